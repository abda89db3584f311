from __future__ import annotations


class PVZServiceError(Exception):
    """Базовая ошибка доменного слоя."""

    message = "Внутренняя ошибка сервера"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class NotFoundError(PVZServiceError):
    pass


class InvalidArgumentError(PVZServiceError):
    message = "Неверный запрос"


class ConflictError(PVZServiceError):
    pass


class PreconditionFailedError(PVZServiceError):
    pass


class AlreadyExistsError(PVZServiceError):
    pass


class UnauthenticatedError(PVZServiceError):
    pass


class InternalError(PVZServiceError):
    pass


class StorageError(InternalError):
    """Ошибка при обращении к БД. Детали драйвера наружу не отдаются."""
    pass


class PickupPointNotFound(NotFoundError):
    message = "ПВЗ не найден"


class InvalidCity(InvalidArgumentError):
    message = "Неверный запрос"


class InvalidProductType(InvalidArgumentError):
    message = "Некорректные данные"


class InvalidPagination(InvalidArgumentError):
    pass


class InvalidRole(InvalidArgumentError):
    pass


class InvalidEmail(InvalidArgumentError):
    message = "Неверный формат электронной почты"


class PickupPointAlreadyHasOpenReception(ConflictError):
    message = "ПВЗ уже имеет незакрытую приемку"


class NoActiveReception(PreconditionFailedError):
    message = "Нет активной приемки"


class NoProductsInReception(PreconditionFailedError):
    message = "Нет товаров для удаления"


class UserAlreadyExists(AlreadyExistsError):
    message = "Неверный запрос"


class InvalidCredentials(UnauthenticatedError):
    message = "Неверные учетные данные"
