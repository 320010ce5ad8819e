"""
templayer: render Handlebars templates through layout chains, named blocks,
partials, widgets and cached resource loading.
"""
__version__ = "0.3.0"
