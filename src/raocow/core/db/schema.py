"""SQLite schema for the embedded graph store."""

# One row per node; user properties are a JSON object, id lives in its own column
NODES_TABLE = """
CREATE TABLE IF NOT EXISTS nodes (
    node_key INTEGER PRIMARY KEY AUTOINCREMENT,
    label TEXT NOT NULL,
    id TEXT NOT NULL,
    properties TEXT NOT NULL DEFAULT '{}',
    UNIQUE(label, id)
);
"""

# Directed, attribute-free edges; the primary key forbids duplicates
EDGES_TABLE = """
CREATE TABLE IF NOT EXISTS edges (
    type TEXT NOT NULL,
    source_key INTEGER NOT NULL,
    target_key INTEGER NOT NULL,
    PRIMARY KEY (type, source_key, target_key),
    FOREIGN KEY (source_key) REFERENCES nodes(node_key) ON DELETE CASCADE,
    FOREIGN KEY (target_key) REFERENCES nodes(node_key) ON DELETE CASCADE
);
"""

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_edges_target ON edges(target_key, type);",
]

ALL_TABLES = [
    NODES_TABLE,
    EDGES_TABLE,
]


def schema_script() -> str:
    """Return the full schema as one executescript() payload."""
    return "\n".join(ALL_TABLES + INDEXES)
