from io import BytesIO

from domain.models.member import MemberStatus

SHEET = [
    ["Padrón de socios"],
    ["RUT", "DV", "NOMBRE", "GENERO"],
    [10017452, "9", "Ana Pérez", "Femenino"],
    [9313137, "1", "Luis Soto", "Masculino"],
    [12345678, "5", "Camila Rojas", None],
]


def _upload(client, payload, filename="socios.xlsx", **form):
    data = {"affiliate": "FENATS OCTAVA", "import_source": "Arauco", **form}
    if payload is not None:
        data["file"] = (BytesIO(payload), filename)
    return client.post("/admin/upload", data=data, content_type="multipart/form-data")


def test_dashboard_requires_login(client):
    resp = client.get("/admin/")

    assert resp.status_code == 302
    assert "/admin/login" in resp.headers["Location"]


def test_dashboard_shows_counts(login_as):
    client = login_as("VIEWER", "viewer")

    resp = client.get("/admin/")

    assert resp.status_code == 200
    assert b'id="stat-total">0<' in resp.data


def test_viewer_cannot_open_upload(login_as):
    client = login_as("VIEWER", "viewer")

    resp = client.get("/admin/upload")

    assert resp.status_code == 403
    assert resp.get_json()["error"] == "PermissionDeniedError"


def test_upload_imports_members(login_as, member_repo, make_workbook):
    client = login_as("ADMIN", "admin")

    resp = _upload(client, make_workbook(SHEET))

    html = resp.get_data(as_text=True)
    assert resp.status_code == 200
    assert 'id="import-summary"' in html
    assert "Import completed." in html
    assert "Created: 3" in html
    assert member_repo.count() == 3
    assert member_repo.find_by_rut("9313137-1").imported_by == "admin"


def test_upload_dry_run_saves_nothing(login_as, member_repo, make_workbook):
    client = login_as("ADMIN", "admin")

    resp = _upload(client, make_workbook(SHEET), dry_run="yes")

    assert resp.status_code == 200
    assert "dry run" in resp.get_data(as_text=True)
    assert member_repo.count() == 0


def test_upload_without_file(login_as):
    client = login_as("ADMIN", "admin")

    resp = _upload(client, None)

    assert resp.status_code == 400
    assert "No file was uploaded." in resp.get_data(as_text=True)


def test_upload_rejects_other_extensions(login_as, make_workbook):
    client = login_as("ADMIN", "admin")

    resp = _upload(client, make_workbook(SHEET), filename="socios.csv")

    assert resp.status_code == 400
    assert "Unsupported file type" in resp.get_data(as_text=True)


def test_upload_unreadable_workbook(login_as, member_repo):
    client = login_as("ADMIN", "admin")

    resp = _upload(client, b"definitely not xlsx")

    assert resp.status_code == 400
    assert 'id="import-error"' in resp.get_data(as_text=True)
    assert member_repo.count() == 0


def test_new_member_form_saves(login_as, member_repo):
    client = login_as("SUPERADMIN", "root")

    resp = client.post(
        "/admin/new",
        data={"full_name": "Ana Pérez", "rut": "10017452-9", "status": "ACTIVE"},
    )

    assert resp.status_code == 200
    assert "Created: Ana Pérez (10.017.452-9)." in resp.get_data(as_text=True)
    assert member_repo.find_by_rut("10017452-9").import_source == "Manual (root)"


def test_new_member_form_invalid_rut(login_as, member_repo):
    client = login_as("ADMIN", "admin")

    resp = client.post("/admin/new", data={"full_name": "Ana", "rut": "nope"})

    assert resp.status_code == 400
    assert member_repo.count() == 0


def test_member_list_search(login_as, member_repo, make_workbook):
    _upload(login_as("ADMIN", "admin"), make_workbook(SHEET))
    client = login_as("VIEWER", "viewer")

    resp = client.get("/admin/members?q=camila")

    html = resp.get_data(as_text=True)
    assert resp.status_code == 200
    assert "Camila Rojas" in html
    assert "Luis Soto" not in html


def test_toggle_and_regenerate(login_as, member_repo, make_workbook):
    client = login_as("ADMIN", "admin")
    _upload(client, make_workbook(SHEET))
    ana = member_repo.find_by_rut("10017452-9")

    resp = client.post(f"/admin/members/{ana.id}/toggle")
    assert resp.status_code == 302
    assert member_repo.find_by_rut("10017452-9").status == MemberStatus.INACTIVE

    resp = client.post(f"/admin/members/{ana.id}/regen-token")
    assert resp.status_code == 302
    assert member_repo.find_by_rut("10017452-9").token != ana.token


def test_viewer_cannot_toggle(login_as, member_repo, make_workbook):
    _upload(login_as("ADMIN", "admin"), make_workbook(SHEET))
    ana = member_repo.find_by_rut("10017452-9")
    client = login_as("VIEWER", "viewer")

    resp = client.post(f"/admin/members/{ana.id}/toggle")

    assert resp.status_code == 403
    assert member_repo.find_by_rut("10017452-9").is_active


def test_stats_endpoint(client, login_as):
    assert client.get("/stats").status_code == 302

    resp = login_as("VIEWER", "viewer").get("/stats")

    assert resp.status_code == 200
    assert resp.get_json()["members"] == {"total": 0, "active": 0, "inactive": 0}


def test_health_endpoint(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.get_json()["status"] == "ok"


def test_new_member_with_wrong_check_digit_is_saved_with_warning(login_as, member_repo):
    client = login_as("ADMIN", "admin")

    resp = client.post("/admin/new", data={"full_name": "Ana", "rut": "10017452-8"})

    html = resp.get_data(as_text=True)
    assert resp.status_code == 200
    assert 'id="check-digit-warning"' in html
    assert member_repo.find_by_rut("10017452-8") is not None


def test_new_member_with_valid_check_digit_has_no_warning(login_as):
    client = login_as("ADMIN", "admin")

    resp = client.post("/admin/new", data={"full_name": "Ana", "rut": "10017452-9"})

    assert 'id="check-digit-warning"' not in resp.get_data(as_text=True)


def test_member_list_flags_wrong_check_digit(login_as, member_repo):
    client = login_as("ADMIN", "admin")
    client.post("/admin/new", data={"full_name": "Ana Pérez", "rut": "10017452-8"})
    client.post("/admin/new", data={"full_name": "Luis Soto", "rut": "9313137-1"})

    html = client.get("/admin/members").get_data(as_text=True)

    assert html.count(">DV?</span>") == 1


def test_new_member_duplicate_key_renders_form(login_as, monkeypatch):
    import routes.admin as admin_routes
    from middleware.errors import DuplicateKeyError

    def clash(form, context):
        raise DuplicateKeyError(details={"rut": "10017452-9"})

    monkeypatch.setattr(admin_routes, "save_member_from_form", clash)
    client = login_as("ADMIN", "admin")

    resp = client.post("/admin/new", data={"full_name": "Ana", "rut": "10017452-9"})

    html = resp.get_data(as_text=True)
    assert resp.status_code == 409
    assert "Duplicate record detected" in html
    assert 'value="Ana"' in html


def test_toggle_unknown_member_is_json_404(login_as):
    client = login_as("ADMIN", "admin")

    resp = client.post(f"/admin/members/{'0' * 24}/toggle")

    assert resp.status_code == 404
    assert resp.get_json()["error"] == "RecordNotFoundError"
