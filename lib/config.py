"""Default parameters for CRUD benchmark runs."""

# Number of concurrent workers per phase.
DEFAULT_THREADS = 4

# Number of samples (keys) written, read and deleted per run.
DEFAULT_SAMPLES = 10_000

# Readiness probe: the backing store must accept a client within this window.
READINESS_TIMEOUT_S = 60.0

# Grace period before the first probe, so a fresh container can start listening.
READINESS_INITIAL_DELAY_S = 2.0

# Fixed delay between two probes (no backoff).
READINESS_INTERVAL_S = 2.0

# Length of the randomized text field of every record.
RECORD_TEXT_LENGTH = 50

# Alphabet the text field is drawn from (37 symbols).
CHARSET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ 0123456789"
