"""
Named Matrix implementation for quadmath.

This module provides a data structure for matrices with named rows and columns,
used to hold slider responses as a player × question grid. Cells a player has
not answered hold NaN.
"""

import numpy as np
import pandas as pd
from typing import List, Dict, Union, Optional, Tuple, Any, Iterable


class IndexHash:
    """
    Maintains an ordered index of names with fast lookup.
    """

    def __init__(self, names: Optional[List[Any]] = None):
        """
        Initialize an IndexHash with optional initial names.

        Args:
            names: Optional list of initial names
        """
        self._names = [] if names is None else list(names)
        self._index_hash = {name: idx for idx, name in enumerate(self._names)}

    def get_names(self) -> List[Any]:
        """Return the ordered list of names."""
        return self._names.copy()

    def next_index(self) -> int:
        """Return the next index value that would be assigned."""
        return len(self._names)

    def index(self, name: Any) -> Optional[int]:
        """
        Get the index for a given name, or None if not found.

        Args:
            name: The name to look up

        Returns:
            The index if found, None otherwise
        """
        return self._index_hash.get(name)

    def append(self, name: Any) -> 'IndexHash':
        """
        Add a new name to the index.

        Args:
            name: The name to add

        Returns:
            A new IndexHash with the added name
        """
        if name in self._index_hash:
            return self

        new_index = IndexHash(self._names)
        new_index._names.append(name)
        new_index._index_hash[name] = len(new_index._names) - 1
        return new_index

    def append_many(self, names: Iterable[Any]) -> 'IndexHash':
        """
        Add multiple names to the index.

        Args:
            names: Names to add

        Returns:
            A new IndexHash with the added names
        """
        result = self
        for name in names:
            result = result.append(name)
        return result

    def subset(self, names: List[Any]) -> 'IndexHash':
        """
        Create a subset of the index with only the specified names.

        Args:
            names: List of names to include in the subset

        Returns:
            A new IndexHash containing only the specified names
        """
        valid_names = [name for name in names if name in self._index_hash]
        return IndexHash(valid_names)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: Any) -> bool:
        return name in self._index_hash


class NamedMatrix:
    """
    A matrix with named rows and columns, backed by a pandas DataFrame.

    Rows are players and columns are questions when the matrix holds
    responses.
    """

    def __init__(self,
                 matrix: Optional[Union[np.ndarray, pd.DataFrame]] = None,
                 rownames: Optional[List[Any]] = None,
                 colnames: Optional[List[Any]] = None):
        """
        Initialize a NamedMatrix with optional initial data.

        Args:
            matrix: Initial matrix data (numpy array or pandas DataFrame)
            rownames: List of row names
            colnames: List of column names
        """
        if isinstance(matrix, pd.DataFrame):
            self._matrix = matrix.astype(float)
            if rownames is not None:
                self._matrix.index = list(rownames)
            if colnames is not None:
                self._matrix.columns = list(colnames)
            rownames = list(self._matrix.index)
            colnames = list(self._matrix.columns)
        elif matrix is None:
            rows = [] if rownames is None else list(rownames)
            cols = [] if colnames is None else list(colnames)
            self._matrix = pd.DataFrame(
                np.full((len(rows), len(cols)), np.nan),
                index=rows,
                columns=cols
            )
        else:
            matrix = np.asarray(matrix, dtype=float)
            rows = rownames if rownames is not None else list(range(matrix.shape[0]))
            cols = colnames if colnames is not None else list(range(matrix.shape[1]))
            self._matrix = pd.DataFrame(matrix, index=list(rows), columns=list(cols))
            rownames, colnames = rows, cols

        self._row_index = IndexHash(rownames)
        self._col_index = IndexHash(colnames)

    @classmethod
    def _from_frame(cls, frame: pd.DataFrame,
                    row_index: IndexHash,
                    col_index: IndexHash) -> 'NamedMatrix':
        result = cls.__new__(cls)
        result._matrix = frame
        result._row_index = row_index
        result._col_index = col_index
        return result

    @property
    def matrix(self) -> pd.DataFrame:
        """Get the underlying DataFrame."""
        return self._matrix

    def rownames(self) -> List[Any]:
        """Get the list of row names."""
        return self._row_index.get_names()

    def colnames(self) -> List[Any]:
        """Get the list of column names."""
        return self._col_index.get_names()

    def update(self, row: Any, col: Any, value: Any) -> 'NamedMatrix':
        """
        Update a single value in the matrix, adding new rows/columns as needed.

        Args:
            row: Row name
            col: Column name
            value: New value

        Returns:
            A new NamedMatrix with the updated value
        """
        return self.update_many([(row, col, value)])

    def update_many(self, updates: List[Tuple[Any, Any, Any]]) -> 'NamedMatrix':
        """
        Update multiple values in the matrix.

        Later updates for the same (row, col) overwrite earlier ones.

        Args:
            updates: List of (row, col, value) tuples

        Returns:
            A new NamedMatrix with the updated values
        """
        row_index = self._row_index.append_many(u[0] for u in updates)
        col_index = self._col_index.append_many(u[1] for u in updates)

        new_matrix = self._matrix.reindex(
            index=row_index.get_names(),
            columns=col_index.get_names()
        ).astype(float)

        for row, col, value in updates:
            new_matrix.at[row, col] = np.nan if value is None else float(value)

        return NamedMatrix._from_frame(new_matrix, row_index, col_index)

    def append_rows(self, rownames: List[Any]) -> 'NamedMatrix':
        """
        Add empty (all-NaN) rows for names not already present.

        Args:
            rownames: Row names to add

        Returns:
            A new NamedMatrix with the added rows
        """
        row_index = self._row_index.append_many(rownames)
        frame = self._matrix.reindex(index=row_index.get_names()).astype(float)
        return NamedMatrix._from_frame(frame, row_index, self._col_index)

    def rowname_subset(self, rownames: List[Any]) -> 'NamedMatrix':
        """
        Create a subset of the matrix with only the specified rows.

        Args:
            rownames: List of row names to include

        Returns:
            A new NamedMatrix with only the specified rows
        """
        valid_rows = [row for row in rownames if row in self._row_index]
        return NamedMatrix._from_frame(
            self._matrix.loc[valid_rows],
            self._row_index.subset(valid_rows),
            self._col_index
        )

    def colname_subset(self, colnames: List[Any]) -> 'NamedMatrix':
        """
        Create a subset of the matrix with only the specified columns.

        Args:
            colnames: List of column names to include

        Returns:
            A new NamedMatrix with only the specified columns
        """
        valid_cols = [col for col in colnames if col in self._col_index]
        return NamedMatrix._from_frame(
            self._matrix[valid_cols],
            self._row_index,
            self._col_index.subset(valid_cols)
        )

    def get_row_by_name(self, row_name: Any) -> np.ndarray:
        """
        Get a row of the matrix by name.

        Raises:
            KeyError: If the row does not exist
        """
        if row_name not in self._row_index:
            raise KeyError(f"Row name '{row_name}' not found")
        return self._matrix.loc[row_name].values

    def get_col_by_name(self, col_name: Any) -> np.ndarray:
        """
        Get a column of the matrix by name.

        Raises:
            KeyError: If the column does not exist
        """
        if col_name not in self._col_index:
            raise KeyError(f"Column name '{col_name}' not found")
        return self._matrix[col_name].values

    def get_value(self, row: Any, col: Any) -> Optional[float]:
        """
        Get a single cell, or None when the cell is missing or unanswered.
        """
        if row not in self._row_index or col not in self._col_index:
            return None
        value = self._matrix.at[row, col]
        if pd.isna(value):
            return None
        return float(value)

    def row_dict(self, row_name: Any) -> Dict[Any, float]:
        """
        Get a row as a {column name: value} dict, skipping NaN cells.
        """
        row = self.get_row_by_name(row_name)
        return {
            col: float(value)
            for col, value in zip(self.colnames(), row)
            if not np.isnan(value)
        }

    def __repr__(self) -> str:
        return f"NamedMatrix(rows={len(self.rownames())}, cols={len(self.colnames())})"

    def __str__(self) -> str:
        return (f"NamedMatrix with {len(self.rownames())} rows and "
                f"{len(self.colnames())} columns\n{self._matrix}")


# Utility functions

def response_matrix(player_ids: Optional[List[Any]] = None,
                    question_ids: Optional[List[Any]] = None,
                    responses: Iterable[Any] = ()) -> NamedMatrix:
    """
    Fold responses into a player × question matrix.

    Rows and columns start with the given ids, in order and without
    repeats; players or questions that only appear in responses are
    appended. A later response
    for the same (player, question) overwrites the earlier one.

    Args:
        player_ids: Roster order for rows
        question_ids: Quiz order for columns
        responses: Objects with player_id, question_id and value attributes

    Returns:
        NamedMatrix of values, NaN where unanswered
    """
    # Duplicate ids would give duplicate labels
    nmat = NamedMatrix(rownames=list(dict.fromkeys(player_ids or [])),
                       colnames=list(dict.fromkeys(question_ids or [])))
    updates = [(r.player_id, r.question_id, r.value) for r in responses]
    if not updates:
        return nmat
    return nmat.update_many(updates)
