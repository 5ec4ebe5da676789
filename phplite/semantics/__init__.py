"""Symbols, bound trees and type inference for PHP-lite.

`model.SemanticModel` is the entry point: it declares every symbol of a
compilation, binds routine bodies on demand and collects diagnostics.
"""
