r"""
Helmsman option catalog.

Overview
- Kind: the value kind of a flag (STRING, INTEGER, BOOLEAN). Validation and
  translation both dispatch on it.
- Option: the static, closed table of every flag the driven tools understand.
  Each member is an immutable record with
  • long: the bare long name ("server"), rendered as long_form ("--server").
  • short: an optional one-letter alias ("s"), rendered as short_form ("-s").
  • kind: the Kind of the value.

Guarantees
- Long names are unique across the whole catalog; this is checked once when the
  module is imported, so a duplicated entry fails loudly instead of shadowing.
- Members are compared by identity, never constructed at runtime, and the enum
  cannot be subclassed.
- Declaration order is significant: flag maps are ordered by it so assembled
  commands are deterministic.

Lookup
- Option.lookup("server"), Option.lookup("--server") and Option.lookup("-s")
  all return Option.SERVER; unknown names raise KeyError.
"""
import enum
import functools


class Kind(enum.Enum):
    """value kind carried by a flag."""
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"


class Option(enum.Enum):
    ENABLE_QUICKSTART           = ("enable_quickstart", None, Kind.BOOLEAN)
    DISABLE_UPDATE_CHECK        = ("disable_update_check", None, Kind.BOOLEAN)
    ENABLE_JAR_SPLITTING        = ("enable_jar_splitting", None, Kind.BOOLEAN)
    JAR_SPLITTING_EXCLUDES      = ("jar_splitting_excludes", None, Kind.STRING)
    RETAIN_UPLOAD_DIR           = ("retain_upload_dir", None, Kind.BOOLEAN)
    COMPILE_ENCODING            = ("compile_encoding", None, Kind.STRING)
    FORCE                       = ("force", "f", Kind.BOOLEAN)
    DELETE_JSPS                 = ("delete_jsps", None, Kind.BOOLEAN)
    ENABLE_JAR_CLASSES          = ("enable_jar_classes", None, Kind.BOOLEAN)
    RUNTIME                     = ("runtime", "r", Kind.STRING)
    USE_REMOTE_RESOURCE_LIMITS  = ("use_remote_resource_limits", None, Kind.BOOLEAN)
    DISABLE_JAR_JSPS            = ("disable_jar_jsps", None, Kind.BOOLEAN)
    SERVER                      = ("server", "s", Kind.STRING)
    DOCKER_BUILD                = ("docker-build", None, Kind.STRING)
    IMAGE_URL                   = ("image-url", None, Kind.STRING)
    REMOTE                      = ("remote", None, Kind.BOOLEAN)
    BUCKET                      = ("bucket", None, Kind.STRING)
    PROMOTE                     = ("promote", None, Kind.BOOLEAN)
    PORT                        = ("port", None, Kind.INTEGER)
    ADMIN_PORT                  = ("admin_port", None, Kind.INTEGER)
    HOST                        = ("host", None, Kind.STRING)
    APPEND                      = ("append", None, Kind.STRING)
    DAYS                        = ("days", None, Kind.INTEGER)
    DETAILS                     = ("details", None, Kind.BOOLEAN)
    END_DATE                    = ("end_date", None, Kind.STRING)
    SEVERITY                    = ("severity", None, Kind.STRING)
    VHOST                       = ("vhost", None, Kind.STRING)
    INSTANCE                    = ("instance", None, Kind.STRING)
    GOOGLE                      = ("google", None, Kind.BOOLEAN)
    SELF                        = ("self", None, Kind.BOOLEAN)
    ADMIN_HOST                  = ("admin_host", None, Kind.STRING)
    AUTH_DOMAIN                 = ("auth_domain", None, Kind.STRING)
    STORAGE_PATH                = ("storage_path", None, Kind.STRING)
    LOG_LEVEL                   = ("log_level", None, Kind.STRING)
    MAX_MODULE_INSTANCES        = ("max_module_instances", None, Kind.INTEGER)
    USE_MTIME_FILE_WATCHER      = ("use_mtime_file_watcher", None, Kind.BOOLEAN)
    THREADSAFE_OVERRIDE         = ("threadsafe_override", None, Kind.STRING)
    PYTHON_STARTUP_SCRIPT       = ("python_startup_script", None, Kind.STRING)
    PYTHON_STARTUP_ARGS         = ("python_startup_args", None, Kind.STRING)
    JVM_FLAG                    = ("jvm_flag", None, Kind.STRING)
    CUSTOM_ENTRYPOINT           = ("custom_entrypoint", None, Kind.STRING)
    ALLOW_SKIPPED_FILES         = ("allow_skipped_files", None, Kind.STRING)
    API_PORT                    = ("api_port", None, Kind.INTEGER)
    AUTOMATIC_RESTART           = ("automatic_restart", None, Kind.BOOLEAN)
    DEV_APPSERVER_LOG_LEVEL     = ("dev_appserver_log_level", None, Kind.STRING)
    SKIP_SDK_UPDATE_CHECK       = ("skip_sdk_update_check", None, Kind.STRING)
    DEFAULT_GCS_BUCKET_NAME     = ("default_gcs_bucket_name", None, Kind.STRING)
    CONFIG                      = ("config", None, Kind.STRING)
    CUSTOM                      = ("custom", None, Kind.BOOLEAN)
    VERSION                     = ("version", "v", Kind.STRING)
    PROJECT                     = ("project", None, Kind.STRING)
    STOP_PREVIOUS_VERSION       = ("stop-previous-version", None, Kind.BOOLEAN)

    def __init__(self, long, short, kind, /):
        self.long = long
        self.short = short
        self.kind = kind

    @property
    def long_form(self):
        return "--" + self.long

    @property
    def short_form(self):
        return None if self.short is None else "-" + self.short

    @property
    def index(self):
        """position of the member in declaration order."""
        return _positions()[self]

    @classmethod
    def lookup(cls, name, /):
        """
        resolve a flag name to its catalog member.

        accepts the bare long name, the long form or the short form.
        """
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            raise TypeError("Option.lookup() argument must be a string")
        return _names()[name.strip()]

    def __repr__(self):
        return f"<Option {self.long_form}>"


@functools.cache
def _names():
    names = {}
    for option in Option:
        names[option.long] = names[option.long_form] = option
        if option.short is not None:
            names[option.short_form] = option
    return names


@functools.cache
def _positions():
    return {option: index for index, option in enumerate(Option)}


def _check_catalog():
    if len(Option.__members__) != len(Option):
        raise TypeError("catalog entries must not alias each other")
    seen = {}
    for option in Option:
        if option.long in seen:
            raise TypeError(f"flag {option.long_form} declared twice ({seen[option.long]} and {option.name})")
        seen[option.long] = option.name
    shorts = [option.short for option in Option if option.short is not None]
    if len(shorts) != len(set(shorts)):
        raise TypeError("short flag forms must be unique")


_check_catalog()


__all__ = (
    "Kind",
    "Option",
)
