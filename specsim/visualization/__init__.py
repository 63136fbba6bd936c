# Visualization Package
from .renderer import Renderer, NullRenderer, TextRenderer

__all__ = ['Renderer', 'NullRenderer', 'TextRenderer']
