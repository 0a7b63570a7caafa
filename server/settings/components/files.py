"""Drive limits."""

from server.settings.components import config

# Storage limit given to users without a quota record: 1 GB
FILES_DEFAULT_QUOTA_BYTES = config(
    'FILES_DEFAULT_QUOTA_BYTES',
    cast=int,
    default=1024 * 1024 * 1024,
)

# Largest single upload: 100 MB
FILES_MAX_UPLOAD_BYTES = config(
    'FILES_MAX_UPLOAD_BYTES',
    cast=int,
    default=100 * 1024 * 1024,
)
