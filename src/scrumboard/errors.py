"""Error taxonomy shared by the services and the API layer"""

from typing import Optional


class ScrumBoardError(Exception):
    """Base class for errors raised by the service layer"""

    status_code = 500

    def __init__(self, message: str, detail: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class NotFoundError(ScrumBoardError):
    """Referenced entity does not exist"""

    status_code = 404

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found", {"entity": entity, "id": entity_id})
        self.entity = entity
        self.entity_id = entity_id


class ForbiddenError(ScrumBoardError):
    """Caller is known but may not touch the target project or entity"""

    status_code = 403


class ValidationError(ScrumBoardError):
    """Input is well-formed JSON but semantically wrong (e.g. foreign status)"""

    status_code = 400


class ConflictError(ScrumBoardError):
    """Operation clashes with existing state (duplicate key, completed sprint...)"""

    status_code = 409
