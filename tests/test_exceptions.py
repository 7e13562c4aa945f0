from fastapi_scoped_rbac import Forbidden


class TestExceptions:
    def test_forbidden_has_403_status_code(self) -> None:
        exc = Forbidden()
        assert exc.status_code == 403

    def test_forbidden_has_default_detail(self) -> None:
        exc = Forbidden()
        assert exc.detail == "Forbidden"
        assert exc.permission is None

    def test_forbidden_accepts_custom_detail(self) -> None:
        exc = Forbidden(detail="Custom message")
        assert exc.detail == "Custom message"

    def test_forbidden_records_denied_permission(self) -> None:
        exc = Forbidden(permission="workspace:entity:delete")
        assert exc.permission == "workspace:entity:delete"
        assert exc.detail == "Forbidden"
