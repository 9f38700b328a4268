"""
Splitters for sorts, relations, search and ids.

Sort and relation lists are comma separated, a sort entry carries its
direction after a pipe: `sort=name|asc,created_at|desc`.
"""

SPLIT_LIST = ","
SPLIT_PAIR = "|"
SPLIT_SEARCH = ":"
SPLIT_REL = "."


def has_symbol(string: str, symbol: str = SPLIT_SEARCH) -> bool:
    """
    Check if a string contains a symbol.

    :param string: value to check.
    :param symbol: symbol to look for.
    """
    return symbol in string
