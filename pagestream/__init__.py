"""Pagestream static site build pipeline.

This package drives an external rendering program through compilation,
runs it once, and turns the stream of tagged messages it prints into a
deployable ``dist/`` tree of HTML, JSON and asset files.

The main entry point is the CLI module, which exposes the ``build`` command.

Architecture:
- Build stages (codegen, compile, module transform, minify, asset staging)
  live in small single-purpose modules.
- The renderer protocol is a closed set of message types decoded in one place.
- The dispatcher owns the fan-out from messages to file writes and records
  failures on an explicit BuildResult.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
