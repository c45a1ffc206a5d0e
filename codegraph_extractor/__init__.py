"""CodeGraph extractor: semantic facts from tree-sitter syntax trees."""

__version__ = "0.1.0"
