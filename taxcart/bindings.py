import logging
from typing import Callable, Dict, Iterator, Tuple

from .errors import BindingCycleError
from .ftypes import Either
from .interfaces import CartItem, declared_parents

logger = logging.getLogger(__name__)


class BindingIndex:
    """
    Индекс привязок: родитель -> упорядоченное множество зависимых id.
    Запись для родителя существует, только пока к нему кто-то привязан.
    Обратный индекс (ребёнок -> родители) ведётся параллельно.
    """

    def __init__(self):
        self._children: Dict[str, Dict[str, None]] = {}
        self._parents: Dict[str, Dict[str, None]] = {}

    def add(self, child_id: str, parent_id: str) -> None:
        self._children.setdefault(parent_id, {})[child_id] = None
        self._parents.setdefault(child_id, {})[parent_id] = None
        logger.debug("bound %s -> %s", child_id, parent_id)

    def remove(self, child_id: str, parent_id: str) -> None:
        """Снимает привязку; пустые записи удаляются. Отсутствующая привязка - не ошибка."""
        children = self._children.get(parent_id)
        if children is not None:
            children.pop(child_id, None)
            if not children:
                del self._children[parent_id]

        parents = self._parents.get(child_id)
        if parents is not None:
            parents.pop(parent_id, None)
            if not parents:
                del self._parents[child_id]

    def children_of(self, parent_id: str) -> Tuple[str, ...]:
        return tuple(self._children.get(parent_id, ()))

    def parents_of(self, child_id: str) -> Tuple[str, ...]:
        return tuple(self._parents.get(child_id, ()))

    def clear(self) -> None:
        self._children.clear()
        self._parents.clear()

    def as_dict(self) -> Dict[str, Tuple[str, ...]]:
        return {parent: tuple(children) for parent, children in self._children.items()}

    def __contains__(self, parent_id: str) -> bool:
        return parent_id in self._children

    def __len__(self) -> int:
        return len(self._children)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._children))


def validate_parents(item: CartItem, has_item: Callable[[str], bool]) -> Either[str, Tuple[str, ...]]:
    """
    Проверяет, что все объявленные родители уже в корзине.
    Left(id первого отсутствующего родителя) или Right(кортеж родителей).
    """
    parents = declared_parents(item)
    missing = next((p for p in parents if not has_item(p)), None)
    if missing is not None:
        return Either.left(missing)
    return Either.right(parents)


def iter_dependents(index: BindingIndex, root_id: str, path: Tuple[str, ...] = ()) -> Iterator[str]:
    """
    Лениво обходит всех зависимых от root_id в глубину (ребёнок раньше своих детей).
    path - цепочка предков; повтор в ней означает цикл привязок.
    """
    path = path + (root_id,)
    for child_id in index.children_of(root_id):
        if child_id in path:
            raise BindingCycleError(path + (child_id,))
        yield child_id
        yield from iter_dependents(index, child_id, path)


def ensure_acyclic(index: BindingIndex, root_id: str) -> None:
    """Проверяет граф до каскадного удаления, чтобы не оставить корзину наполовину очищенной"""
    for _ in iter_dependents(index, root_id):
        pass
