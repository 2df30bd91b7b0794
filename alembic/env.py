import sys
from pathlib import Path
from logging.config import fileConfig
from urllib.parse import urlparse, urlunparse, parse_qsl, urlencode

from alembic import context
from sqlalchemy import engine_from_config, pool

# Ensure project root on sys.path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from lms.core.config import get_settings
from lms.db.base import Base, discover_feature_models

discover_feature_models()

# Supabase owns these schemas; autogenerate must never touch them.
MANAGED_SCHEMAS = {"auth", "storage"}


def _migrations_url(url: str) -> str:
    """psycopg2 driver + sslmode=require unless the URL says otherwise."""
    if not url:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+psycopg2://", 1)
    parsed = urlparse(url)
    query = dict(parse_qsl(parsed.query, keep_blank_values=True))
    query.setdefault("sslmode", "require")
    return urlunparse(parsed._replace(query=urlencode(query)))


URL = _migrations_url(get_settings().get_database_url())

config = context.config
# ConfigParser interpolation: a literal % in the password must be doubled
config.set_main_option("sqlalchemy.url", URL.replace("%", "%%"))
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def include_object(obj, name, type_, reflected, compare_to):
    schema = getattr(obj, "schema", None)
    if type_ == "table" and schema in MANAGED_SCHEMAS:
        return False
    if type_ == "foreign_key_constraint":
        referred = getattr(obj, "referred_table", None)
        if getattr(referred, "schema", None) in MANAGED_SCHEMAS:
            return False
    return True


def _options() -> dict:
    return {
        "target_metadata": Base.metadata,
        "compare_type": True,
        "compare_server_default": True,
        "include_object": include_object,
        "include_schemas": False,
    }


def run_migrations_offline() -> None:
    context.configure(url=URL, literal_binds=True, dialect_opts={"paramstyle": "named"}, **_options())
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = dict(config.get_section(config.config_ini_section) or {})
    section["sqlalchemy.url"] = URL
    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, **_options())
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
