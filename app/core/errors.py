"""Erreurs métier, traduites en réponses HTTP dans app.main"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Entrée manquante ou invalide (400)"""
    status_code = 400


class NotFoundError(AppError):
    """Id référencé absent (404)"""
    status_code = 404


class StoreError(AppError):
    """Echec de la persistance (500), le détail reste dans les logs"""
    status_code = 500
