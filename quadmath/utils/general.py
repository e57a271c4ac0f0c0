"""
General utility functions for the quadmath package.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

T = TypeVar('T')
U = TypeVar('U')


def map_rest(f: Callable[[T, T], U], coll: List[T]) -> List[U]:
    """
    Apply a function to each element and all remaining elements.
    
    For each element in coll, apply function f to that element and each 
    element that comes after it.
    
    Args:
        f: Function taking two arguments
        coll: Collection to process
        
    Returns:
        List of results
    """
    result = []
    n = len(coll)
    for i in range(n):
        for j in range(i + 1, n):
            result.append(f(coll[i], coll[j]))
    return result


def index_pairs(n: int) -> List[Tuple[int, int]]:
    """
    All index pairs (i, j) with i < j, in ascending order.
    
    Args:
        n: Number of items
        
    Returns:
        List of index pairs
    """
    return map_rest(lambda i, j: (i, j), list(range(n)))


def same_pair(pair: Optional[Tuple[Any, Any]], a: Any, b: Any) -> bool:
    """
    Check whether an unordered pair matches (a, b) in either order.
    """
    if pair is None:
        return False
    return (pair[0] == a and pair[1] == b) or (pair[0] == b and pair[1] == a)


def deep_update(d: Dict[str, Any], u: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge dictionary u into d.
    
    Args:
        d: Dictionary to update in place
        u: Values to merge in
        
    Returns:
        The updated dictionary
    """
    for k, v in u.items():
        if isinstance(v, dict) and k in d and isinstance(d[k], dict):
            d[k] = deep_update(d[k], v)
        else:
            d[k] = v
    return d
