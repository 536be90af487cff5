"""Build tree-sitter grammar packages into WebAssembly parser artifacts."""

__version__ = "0.1.0"
