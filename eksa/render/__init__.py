"""Template rendering for generated configuration files."""

from eksa.render.renderer import render_template, unresolved_keys

__all__ = ["render_template", "unresolved_keys"]
