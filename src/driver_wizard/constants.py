"""Shared constants for driver-wizard.

Pipeline step identifiers are stable: the engine reports progress by step
position, but step names appear in logs, configuration overrides and the
--fail-at option of the CLI.
"""

# =============================================================================
# Pipeline defaults
# =============================================================================

# Number of output lines retained on the progress screen
DEFAULT_LOG_LINES = 10

# Steps listed before the remainder collapses into "..."
STEP_DISPLAY_LIMIT = 7

# Delay between simulated engine events, in seconds
DEFAULT_STEP_DELAY = 0.4

# Spinner refresh interval for the TUI, in seconds
TICK_INTERVAL = 0.1

SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"

# Routed events kept in the session trace, oldest dropped first
TRACE_LIMIT = 500

# =============================================================================
# Install pipeline
# =============================================================================

# Fixed steps before the per-component install steps: (name, description)
INSTALL_LEADING_STEPS = (
    ("prepare", "Preparing system"),
    ("blacklist", "Blacklisting Nouveau driver"),
    ("update", "Updating package lists"),
)

# Fixed steps after the per-component install steps
INSTALL_TRAILING_STEPS = (
    ("configure", "Configuring drivers"),
    ("verify", "Verifying installation"),
)

# Prefix of the dynamically generated component step names
INSTALL_COMPONENT_PREFIX = "install_"

# =============================================================================
# Uninstall pipeline
# =============================================================================

# Uninstall step that re-enables nouveau; skipped when the plan keeps it off
RESTORE_NOUVEAU_STEP = "restore_nouveau"

DEFAULT_UNINSTALL_STEPS = (
    ("unload_modules", "Unload kernel modules"),
    ("remove_packages", "Remove packages"),
    ("remove_configs", "Remove configuration files"),
    (RESTORE_NOUVEAU_STEP, "Restore nouveau driver"),
    ("regenerate_initramfs", "Regenerate initramfs"),
)

# =============================================================================
# Configuration
# =============================================================================

CONFIG_FILENAMES = [
    "driver-wizard.yml",
    "driver-wizard.yaml",
    ".driver-wizard.yml",
    ".driver-wizard.yaml",
]
