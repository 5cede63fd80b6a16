from .catalog import Catalog
from .storage import Table
from .runner import StatementRunner
from .executor import Executor
from .parser import Parser
from .formatter import format_result
from .seed import seed_catalog

__all__ = ["Catalog", "Table", "StatementRunner", "Executor", "Parser", "format_result", "seed_catalog"]
