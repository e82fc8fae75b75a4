"""
Compiler Fleet - startup discovery of local and remote compiler backends.
"""

__version__ = "0.1.0"

# Lazy imports - keep aiohttp out of the import path until needed
def __getattr__(name):
    if name == "find_compilers":
        from .discovery.assembler import find_compilers
        return find_compilers
    elif name == "CompilerRegistry":
        from .core.types import CompilerRegistry
        return CompilerRegistry
    elif name == "PropertyRepository":
        from .config.properties import PropertyRepository
        return PropertyRepository
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = ["__version__"]
