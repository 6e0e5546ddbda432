"""
Hierarchy repair for an existing SQLite DB.
Run:  python migrate.py [path/to/productivity.db]

What it does (idempotent):
- Add parent_id, order_index, depth, completed_at to plans and bucketlist
- Recompute depth from each row's parent chain (orphans become depth 0)
- Renumber every sibling group to 0..n-1, keeping the stored order
- Normalize template item lists (legacy nested subItems become flat nodes)
"""
import json
import sqlite3
import sys
from pathlib import Path

from backend.template_items import normalize_items
from order_utils import reconcile_order
from tree_utils import derive_depths, siblings_of

DB_PATH = Path("instance") / "productivity.db"
TREE_TABLES = ("plans", "bucketlist")


def column_exists(cursor, table, column):
    cursor.execute(f"PRAGMA table_info({table})")
    return any(row[1] == column for row in cursor.fetchall())


def table_exists(cursor, name):
    cursor.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (name,))
    return cursor.fetchone() is not None


def add_column(cursor, table, column, col_type):
    if column_exists(cursor, table, column):
        print(f"[skip] {table}.{column} exists")
        return
    cursor.execute(f"ALTER TABLE {table} ADD COLUMN {column} {col_type}")
    print(f"[add] {table}.{column}")


def add_hierarchy_columns(cur, table):
    add_column(cur, table, "parent_id", "VARCHAR(32)")
    add_column(cur, table, "order_index", "INTEGER DEFAULT 0")
    add_column(cur, table, "depth", "INTEGER DEFAULT 0")
    add_column(cur, table, "completed_at", "DATETIME")


def load_nodes(cur, table):
    rows = cur.execute(
        f"SELECT id, parent_id, order_index, depth FROM {table} ORDER BY created_at, id"
    ).fetchall()
    return [
        {'id': node_id, 'parent_id': parent_id, 'order_index': order_index or 0, 'depth': depth}
        for node_id, parent_id, order_index, depth in rows
    ]


def repair_depths(cur, table):
    nodes = load_nodes(cur, table)
    depths = derive_depths(nodes)
    changed = 0
    for node in nodes:
        if node['depth'] != depths[node['id']]:
            cur.execute(f"UPDATE {table} SET depth=? WHERE id=?", (depths[node['id']], node['id']))
            changed += 1
    print(f"[update] {table}: depth fixed on {changed} rows")


def reindex_siblings(cur, table):
    nodes = load_nodes(cur, table)
    changed = 0
    for parent_id in {node['parent_id'] for node in nodes}:
        for update in reconcile_order(siblings_of(nodes, parent_id)):
            cur.execute(f"UPDATE {table} SET order_index=? WHERE id=?", (update['order_index'], update['id']))
            changed += 1
    print(f"[update] {table}: order_index renumbered on {changed} rows")


def normalize_template_items(cur):
    rows = cur.execute("SELECT id, items FROM templates").fetchall()
    for template_id, raw in rows:
        items = normalize_items(json.loads(raw) if raw else [])
        cur.execute("UPDATE templates SET items=? WHERE id=?", (json.dumps(items), template_id))
    print(f"[update] templates: normalized items on {len(rows)} templates")


def main(db_path=DB_PATH):
    conn = sqlite3.connect(db_path)
    cur = conn.cursor()
    try:
        for table in TREE_TABLES:
            if not table_exists(cur, table):
                print(f"[skip] {table} missing")
                continue
            add_hierarchy_columns(cur, table)
            repair_depths(cur, table)
            reindex_siblings(cur, table)
        if table_exists(cur, "templates"):
            normalize_template_items(cur)
        conn.commit()
        print("Migration complete.")
    finally:
        conn.close()


if __name__ == "__main__":
    main(Path(sys.argv[1]) if len(sys.argv) > 1 else DB_PATH)
