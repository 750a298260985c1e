from deadshake.engine.driver import DEFAULT_KEEP_UNITS, Shaker
from deadshake.engine.visitor import DeclarationVisitor

__all__ = ["DEFAULT_KEEP_UNITS", "DeclarationVisitor", "Shaker"]
