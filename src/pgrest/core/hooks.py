"""Extension points invoked at fixed stages of the request pipeline."""

from typing import TYPE_CHECKING, Any, Dict, List, Union

if TYPE_CHECKING:
    from pgrest.core.request import Command, RawRequest

Row = Dict[str, Any]


class EntityHooks:
    """
    Identity implementation of every hook.

    Subclass and override the stages you need. Each hook must return a value
    of the same shape it received (an object, or a list of objects).
    """

    def pre_insert(self, data: Union[Row, List[Row]]) -> Union[Row, List[Row]]:
        return data

    def pre_update(self, data: Row) -> Row:
        return data

    def pre_query(self, command: "Command", request: "RawRequest") -> "Command":
        return command

    def post_select(self, rows: List[Row]) -> List[Row]:
        return rows
