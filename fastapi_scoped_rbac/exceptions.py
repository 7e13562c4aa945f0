from fastapi import HTTPException


class Forbidden(HTTPException):
    """403 Forbidden - user lacks required permissions.

    Args:
        detail: Response detail.
        permission: The required permission that was denied, if known.
    """

    def __init__(self, detail: str = "Forbidden", permission: str | None = None) -> None:
        super().__init__(status_code=403, detail=detail)
        self.permission = permission
