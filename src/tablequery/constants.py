"""
AST node type tags shared by queries and verbs.
"""

QUERY_TYPE = "Query"
VERB_TYPE = "Verb"
TABLE_REF_TYPE = "TableRef"
DESCENDING_TYPE = "Descending"
