"""Built-in SQL dialects."""

from semdown.graph.models import SemanticType
from .base import DialectConfig, register_dialect

# Words quoted in every dialect when used as identifiers
COMMON_RESERVED = frozenset(
    {
        "all", "and", "as", "asc", "between", "by", "case", "check", "column",
        "constraint", "create", "cross", "current_date", "date", "default",
        "delete", "desc", "distinct", "drop", "else", "end", "exists", "foreign",
        "from", "full", "group", "having", "in", "index", "inner", "insert",
        "into", "is", "join", "key", "left", "like", "limit", "not", "null",
        "on", "or", "order", "outer", "primary", "references", "right",
        "select", "set", "table", "then", "to", "union", "unique", "update",
        "user", "using", "values", "view", "when", "where", "with",
    }
)

POSTGRES = register_dialect(
    DialectConfig(
        name="postgres",
        sqlglot_dialect="postgres",
        type_map={
            SemanticType.STRING: "TEXT",
            SemanticType.DATE: "DATE",
            SemanticType.NUMBER: "NUMERIC",
            SemanticType.REFERENCE: "TEXT",
        },
        identifier_quote=('"', '"'),
        reserved_words=COMMON_RESERVED | {"analyse", "analyze", "offset", "returning"},
        current_date="CURRENT_DATE",
        create_view="CREATE OR REPLACE VIEW",
    )
)

MYSQL = register_dialect(
    DialectConfig(
        name="mysql",
        sqlglot_dialect="mysql",
        type_map={
            SemanticType.STRING: "VARCHAR(255)",
            SemanticType.DATE: "DATE",
            SemanticType.NUMBER: "DECIMAL(18, 4)",
            SemanticType.REFERENCE: "VARCHAR(255)",
        },
        identifier_quote=("`", "`"),
        reserved_words=COMMON_RESERVED | {"condition", "interval", "rank"},
        current_date="CURRENT_DATE()",
        create_view="CREATE OR REPLACE VIEW",
    )
)

SQLITE = register_dialect(
    DialectConfig(
        name="sqlite",
        sqlglot_dialect="sqlite",
        type_map={
            SemanticType.STRING: "TEXT",
            SemanticType.DATE: "DATE",
            SemanticType.NUMBER: "NUMERIC",
            SemanticType.REFERENCE: "TEXT",
        },
        identifier_quote=('"', '"'),
        reserved_words=COMMON_RESERVED | {"abort", "glob", "offset"},
        current_date="DATE('now')",
        create_view="CREATE VIEW IF NOT EXISTS",
    )
)
