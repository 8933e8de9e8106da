# Copyright 2025 Entalpic
"""Building blocks of the updater: platform, git, build, release and orchestration."""
