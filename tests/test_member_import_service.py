import pytest
from pymongo.errors import PyMongoError

from domain.models.member import MemberStatus
from domain.models.member_import import ImportRow
from domain.models.user import AdminContext, AdminRole
from middleware.errors import ImportStoreError
from services import member_import_service as svc

ADMIN = AdminContext(username="admin", role=AdminRole.ADMIN)

MEMBER_SHEET = [
    ["Federación", None, None, None, None],
    [None, None, None, None, None],
    [None, "RUT", "DV", "NOMBRE", "GENERO"],
    [None, 10017452, "9", "Ana Pérez", "Femenino"],
    [None, "9.313.137", "1", "Luis Soto", "MASCULINO"],
    [None, 12345678, "5", "Camila Rojas", None],
    [None, 11111111, "1", None, None],
    [None, 22222222, "2", None, "Femenino"],
]


def _import(data, repo, **kwargs):
    kwargs.setdefault("affiliate", "FENATS OCTAVA")
    kwargs.setdefault("import_source", "Arauco 12/2025")
    return svc.import_members(data, repo=repo, context=ADMIN, **kwargs)


def test_import_source_label():
    assert svc.import_source_label("FENATS OCTAVA", "Arauco") == "FENATS OCTAVA · Arauco"


def test_first_import_creates_and_second_updates(member_repo, make_workbook):
    data = make_workbook(MEMBER_SHEET)

    first = _import(data, member_repo)
    assert first.to_dict() == {
        "total_rows": 3,
        "created": 3,
        "updated": 0,
        "skipped": 0,
        "dry_run": False,
    }
    assert first.message == "Import completed."
    tokens = {m.rut: m.token for m in member_repo.search_members(None, 0, 0)[0]}

    second = _import(data, member_repo)
    assert (second.total_rows, second.created, second.updated, second.skipped) == (3, 0, 3, 0)
    assert member_repo.count() == 3
    assert {m.rut: m.token for m in member_repo.search_members(None, 0, 0)[0]} == tokens


def test_imported_member_fields(member_repo, make_workbook):
    _import(make_workbook(MEMBER_SHEET), member_repo)

    ana = member_repo.find_by_rut("10017452-9")
    assert ana.full_name == "Ana Pérez"
    assert ana.rut_masked == "10.017.452-9"
    assert ana.gender == "FEMALE"
    assert ana.affiliate == "FENATS OCTAVA"
    assert ana.status == MemberStatus.ACTIVE
    assert ana.import_source == "FENATS OCTAVA · Arauco 12/2025"
    assert ana.imported_by == "admin"
    assert ana.last_import_at is not None
    assert len(ana.token) == 32

    assert member_repo.find_by_rut("9313137-1").gender == "MALE"
    assert member_repo.find_by_rut("12345678-5").gender is None


def test_reimport_does_not_reactivate_or_rekey(member_repo, make_workbook):
    data = make_workbook(MEMBER_SHEET)
    _import(data, member_repo)
    ana = member_repo.find_by_rut("10017452-9")
    member_repo.set_status(ana.id, MemberStatus.INACTIVE)

    _import(data, member_repo, import_source="Arauco 01/2026")

    again = member_repo.find_by_rut("10017452-9")
    assert again.status == MemberStatus.INACTIVE
    assert again.token == ana.token
    assert again.import_source == "FENATS OCTAVA · Arauco 01/2026"


def test_duplicate_rut_in_one_batch_creates_once(member_repo):
    rows = [
        ImportRow(rut_raw="10017452-9", full_name="Ana Pérez"),
        ImportRow(rut_raw="10.017.452-9", full_name="Ana María Pérez"),
    ]

    summary = svc.reconcile_rows(
        rows, affiliate="FENATS OCTAVA", import_source="Carga Excel", repo=member_repo
    )

    assert (summary.created, summary.updated) == (1, 1)
    assert member_repo.count() == 1
    assert member_repo.find_by_rut("10017452-9").full_name == "Ana María Pérez"


def test_unparseable_rut_is_counted_as_skipped(member_repo):
    rows = [
        ImportRow(rut_raw="ABC", full_name="Sin RUT"),
        ImportRow(rut_raw="10017452-9", full_name="Ana"),
    ]

    summary = svc.reconcile_rows(
        rows, affiliate="FENATS OCTAVA", import_source="Carga Excel", repo=member_repo
    )

    assert (summary.total_rows, summary.created, summary.skipped) == (2, 1, 1)
    assert summary.message == "Import completed (1 rows skipped without a valid RUT)."


def test_empty_affiliate_is_stored_as_none(member_repo):
    svc.reconcile_rows(
        [ImportRow(rut_raw="10017452-9", full_name="Ana")],
        affiliate="",
        import_source="Carga Excel",
        repo=member_repo,
    )

    assert member_repo.find_by_rut("10017452-9").affiliate is None


def test_dry_run_counts_without_writing(member_repo):
    rows = [
        ImportRow(rut_raw="10017452-9", full_name="Ana"),
        ImportRow(rut_raw="10017452-9", full_name="Ana bis"),
        ImportRow(rut_raw="9313137-1", full_name="Luis"),
    ]

    summary = svc.reconcile_rows(
        rows,
        affiliate="FENATS OCTAVA",
        import_source="Carga Excel",
        repo=member_repo,
        dry_run=True,
    )

    assert summary.dry_run is True
    assert (summary.created, summary.updated) == (2, 1)
    assert member_repo.count() == 0


def test_sheet_without_member_table_imports_nothing(member_repo, make_workbook):
    data = make_workbook([["Informe"], ["Nombre completo", "Correo"], ["Ana", "ana@fenats.cl"]])

    summary = _import(data, member_repo)

    assert summary.to_dict() == {
        "total_rows": 0,
        "created": 0,
        "updated": 0,
        "skipped": 0,
        "dry_run": False,
    }


def test_store_failure_aborts_with_partial_counts(member_repo, monkeypatch):
    original_create = member_repo.create
    calls = {"n": 0}

    def flaky_create(member):
        calls["n"] += 1
        if calls["n"] == 2:
            raise PyMongoError("connection reset")
        return original_create(member)

    monkeypatch.setattr(member_repo, "create", flaky_create)
    rows = [
        ImportRow(rut_raw="10017452-9", full_name="Ana"),
        ImportRow(rut_raw="9313137-1", full_name="Luis"),
        ImportRow(rut_raw="12345678-5", full_name="Camila"),
    ]

    with pytest.raises(ImportStoreError) as exc_info:
        svc.reconcile_rows(
            rows, affiliate="FENATS OCTAVA", import_source="Carga Excel", repo=member_repo
        )

    err = exc_info.value
    assert err.code == 500
    assert err.details["rut"] == "9313137-1"
    assert (err.details["total_rows"], err.details["created"], err.details["updated"]) == (2, 1, 0)
    assert member_repo.find_by_rut("10017452-9") is not None
    assert member_repo.find_by_rut("12345678-5") is None
