"""Исключения реферального ядра.

Ошибки хранилища (``sqlalchemy.exc.SQLAlchemyError``) сюда не заворачиваются:
сервис их логирует и пробрасывает как есть.
"""


class ReferralError(Exception):
    """Базовое исключение реферальной программы."""


class CodeGenerationExhausted(ReferralError):
    """Исчерпан лимит попыток подобрать свободный случайный код."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Не удалось подобрать уникальный реферальный код за {attempts} попыток")
        self.attempts = attempts


class DuplicateCustomCode(ReferralError):
    """Выбранный пользователем код уже занят активным профилем."""

    def __init__(self, code: str) -> None:
        super().__init__(f"Реферальный код {code} уже занят")
        self.code = code


class InvalidCustomCode(ReferralError, ValueError):
    """После нормализации от пользовательского кода ничего не осталось."""


class InvalidReferralStatus(ReferralError, ValueError):
    def __init__(self, status: str) -> None:
        super().__init__(f"Неизвестный статус реферального профиля: {status}")
        self.status = status


class ProfileNotFound(ReferralError, LookupError):
    """Мутация запрошена для пользователя без реферального профиля."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"Реферальный профиль пользователя {user_id} не найден")
        self.user_id = user_id


class CounterInvariantViolation(ReferralError):
    """Успешных рефералов не может стать больше, чем всего рефералов."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            f"successful_referrals не может превысить total_referrals (пользователь {user_id})"
        )
        self.user_id = user_id
