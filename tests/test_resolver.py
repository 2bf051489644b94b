from sqlmodel import Session, select

from app.collector.resolver import (
    _insert_ignoring_conflicts,
    find_or_create,
    resolve_environment,
    resolve_object,
    resolve_site,
    sanitize_identifier,
)
from app.core.dimension_registry import get_revision
from app.models.dimension_models import (
    Country,
    JavaProfile,
    OperatingSystem,
    PluginObject,
    UpdateSite,
    User,
)
from app.models.payload_models import SitePayload, StatPayload, UsagePayload


def test_same_site_resolves_to_same_key(session: Session):
    site = SitePayload(name="Fiji", url="https://fiji.sc")

    first = resolve_site(session, site)
    second = resolve_site(session, site)

    assert first == second
    rows = session.exec(select(UpdateSite)).all()
    assert len(rows) == 1
    assert (rows[0].name, rows[0].url) == ("Fiji", "https://fiji.sc")


def test_distinct_natural_keys_get_distinct_rows(session: Session):
    fiji = resolve_site(session, SitePayload(name="Fiji", url="https://fiji.sc"))
    imagej = resolve_site(session, SitePayload(name="ImageJ", url="https://update.imagej.net"))
    same_name_other_url = resolve_site(session, SitePayload(name="Fiji", url="https://mirror"))

    assert len({fiji, imagej, same_name_other_url}) == 3


def test_find_or_create_single_column_dimension(session: Session):
    first = find_or_create(session, User, {"user": "alice"})
    again = find_or_create(session, User, {"user": "alice"})
    other = find_or_create(session, User, {"user": "bob"})

    assert first == again
    assert other != first
    assert len(session.exec(select(User)).all()) == 2


def test_insert_ignoring_conflicts_keeps_one_row(session: Session):
    """Two racing inserts of the same new value must collapse onto one row."""
    values = {"name": "Linux", "arch": "amd64", "version": "6.1"}
    session.connection().execute(_insert_ignoring_conflicts(session, OperatingSystem, values))
    session.connection().execute(_insert_ignoring_conflicts(session, OperatingSystem, values))

    assert len(session.exec(select(OperatingSystem)).all()) == 1
    assert find_or_create(session, OperatingSystem, values) is not None
    assert len(session.exec(select(OperatingSystem)).all()) == 1


def test_missing_country_resolves_to_empty_key_and_is_reused(session: Session):
    revision = get_revision(3)
    without_country = UsagePayload.model_validate({"user_language": "en"})

    first = resolve_environment(session, without_country, revision)
    second = resolve_environment(session, without_country, revision)

    assert first["country_id"] == second["country_id"]
    countries = session.exec(select(Country)).all()
    assert [c.name for c in countries] == [""]


def test_resolve_environment_follows_revision(session: Session):
    payload = UsagePayload.model_validate(
        {"user": "alice", "os_name": "Linux", "java_version": "1.8.0_172"}
    )

    assert resolve_environment(session, payload, get_revision(1)) == {}

    ids = resolve_environment(session, payload, get_revision(2))
    assert set(ids) == {"user_id", "country_id", "language_id", "timezone_id"}
    assert session.exec(select(OperatingSystem)).all() == []

    ids = resolve_environment(session, payload, get_revision(3))
    assert set(ids) == {
        "user_id",
        "country_id",
        "language_id",
        "timezone_id",
        "os_id",
        "java_id",
    }
    java = session.exec(select(JavaProfile)).one()
    assert java.version == "1.8.0_172"
    assert java.vendor == ""


def test_object_keeps_first_seen_attributes(session: Session):
    site_id = resolve_site(session, SitePayload(name="Fiji", url="https://fiji.sc"))
    stat = StatPayload(id="command:Blur", version="1.0", name="Blur", label="Gaussian Blur")

    first = resolve_object(session, stat, site_id)
    renamed = StatPayload(id="command:Blur", version="1.0", name="Other", label="Other")
    second = resolve_object(session, renamed, site_id)

    assert first == second
    row = session.get(PluginObject, first)
    assert row.site_id == site_id
    assert row.name == "Blur"
    assert row.label == "Gaussian Blur"


def test_object_versions_are_separate_rows(session: Session):
    site_id = resolve_site(session, SitePayload(name="Fiji", url="https://fiji.sc"))
    v1 = resolve_object(session, StatPayload(id="command:Blur", version="1.0"), site_id)
    v2 = resolve_object(session, StatPayload(id="command:Blur", version="2.0"), site_id)

    assert v1 != v2


def test_legacy_identifier_with_path_is_stored_sanitized(session: Session):
    site_id = resolve_site(session, SitePayload(name="Fiji", url="https://fiji.sc"))
    object_id = resolve_object(
        session, StatPayload(id="legacy:run?C:\\Users\\bob\\plugin.jar"), site_id
    )

    assert session.get(PluginObject, object_id).identifier == "legacy:run"


def test_sanitize_strips_path_arguments():
    assert sanitize_identifier("legacy:run?C:\\Users\\bob\\plugin.jar") == "legacy:run"
    assert sanitize_identifier("legacy:ij.plugin.Macro_Runner?/home/bob/macro.ijm") == (
        "legacy:ij.plugin.Macro_Runner"
    )


def test_sanitize_leaves_other_identifiers_unchanged():
    for identifier in (
        "legacy:ij.plugin.Commands?quit",
        "legacy:ij.plugin.Zoom",
        "command:net.imagej.plugins.commands.debug.SystemInformation",
        "command:foo?bar/baz",
        "",
    ):
        assert sanitize_identifier(identifier) == identifier
