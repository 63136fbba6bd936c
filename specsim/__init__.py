# Speculative Execution Simulator Package
"""
Speculative-Execution Side-Channel Simulator

A deterministic, fully synthetic model of:
- A saturating-counter branch predictor
- A two-level FIFO cache hierarchy
- A four-stage pipeline view
- Browser-style mitigations (constant-time, jitter, fence, timer clamping,
  anomaly detection)

No real memory, timers or hardware state are touched.
"""

__version__ = "1.0.0"
