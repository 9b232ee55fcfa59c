from typing import Optional


class AppError(Exception):
    """Base error rendered as ``{"message": ...}`` with ``status_code``."""

    status_code = 500
    default_message = "Error en el servidor."

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Datos inválidos."


class ConflictError(AppError):
    status_code = 400
    default_message = "El recurso ya existe."


class AuthorizationError(AppError):
    status_code = 403
    default_message = "No autorizado."


class InvalidCredentialsError(AppError):
    status_code = 400
    default_message = "Contraseña incorrecta."


class NotFoundError(AppError):
    status_code = 404
    default_message = "Recurso no encontrado."


class InvalidTokenError(AppError):
    status_code = 400
    default_message = "Token inválido o inexistente."


class ExpiredTokenError(InvalidTokenError):
    default_message = "El token ha expirado."


class UnauthenticatedError(AppError):
    status_code = 401
    default_message = "Acceso denegado, token requerido."


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Acceso denegado."


class InternalError(AppError):
    status_code = 500


class EmailDeliveryError(InternalError):
    default_message = "No se pudo enviar el correo."
