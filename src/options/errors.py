"""Исключения модели опций продукта.

- InvalidInputError: некорректные ссылки OptionSet/Option/Selection
  (отклоняются на границе, до вызова Matrix Builder / Nesting Aggregator)
- InternalConsistencyError: обход дерева пришёл в неожиданное состояние
- LeafCollisionError: строгая политика коллизии leaf/children слота
- MatrixTooLargeError: размер матрицы превышает заданный предел
"""


class OptionModelError(Exception):
    """Базовое исключение модели опций."""
    pass


class InvalidInputError(OptionModelError):
    """
    Некорректные входные данные.

    Примеры: selection ссылается на опцию, отсутствующую во всех известных
    OptionSet; дублирующиеся id наборов или опций.
    """
    pass


class InternalConsistencyError(OptionModelError):
    """
    Обход дерева nesting достиг состояния, которое алгоритм не ожидает.

    Означает повреждённые входные данные, а не штатный edge case.
    Частичный результат не возвращается.
    """
    pass


class LeafCollisionError(InternalConsistencyError):
    """
    Путь selection проходит через слот children, уже занятый leaf id
    более короткой selection (LeafCollisionPolicy.RAISE).
    """
    pass


class MatrixTooLargeError(OptionModelError):
    """Количество комбинаций превышает MatrixConfig.max_combinations."""
    pass
