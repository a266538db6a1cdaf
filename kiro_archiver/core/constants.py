"""Constants used throughout the Kiro archiver."""


# Project layout
KIRO_DIR_NAME = ".kiro"
SPECS_DIR = ".kiro/specs"
ARCHIVE_DIR_NAME = "archive"
DEFAULT_ARCHIVE_LOCATION = ".kiro/specs/archive"

# Spec documents
TASKS_FILE = "tasks.md"
REQUIREMENTS_FILE = "requirements.md"
DESIGN_FILE = "design.md"
REQUIRED_SPEC_FILES = (REQUIREMENTS_FILE, DESIGN_FILE, TASKS_FILE)
OPTIONAL_SPEC_FILES = ("notes.md", "testing.md")

# Persisted files
CONFIG_FILE_NAME = ".kiro-archival-config.json"
INDEX_FILE_NAME = ".archive-index.json"
ARCHIVE_METADATA_FILE = ".archive-metadata.json"
WRITE_PROBE_FILE = ".write-test"

# Schema versions
CONFIG_VERSION = "1.0"
INDEX_VERSION = "1.0"
METADATA_VERSION = "1.0"

# Configuration bounds
DEFAULT_DELAY_MINUTES = 10
MAX_DELAY_MINUTES = 1440  # 24 hours

# Safety and validation thresholds
RECENT_MODIFICATION_MINUTES = 5
MAX_RECOMMENDED_TASKS = 50
MIN_DOCUMENT_LENGTH = 100

# Archive naming
ARCHIVE_DATE_FORMAT = "%Y-%m-%d"
ARCHIVE_TIME_FORMAT = "%H-%M-%S"

# Config keys that only exist in the persisted file or its backups
CONFIG_META_FIELDS = ("_version", "_lastUpdated")
BACKUP_META_FIELDS = ("_backupCreated", "_originalPath")

NOTIFICATION_LOGGER = "kiro_archiver.notifications"
