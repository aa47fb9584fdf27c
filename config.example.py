# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Nothing here is imported by the app; it lists every knob in one place.
"""

ENV_VARS = {
    # App / logging
    "LUMINA_APP_NAME": "App display name (default: lumina).",
    "LUMINA_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Connectors
    "LUMINA_CONSOLE_ENABLED": "Run the console REPL (true/false, default: true).",
    # Paths (gitignored)
    "LUMINA_DATA_DIR": "Local data directory (default: .local/lumina).",
    "LUMINA_STORE_PATH": "Key-value SQLite path (default: <data_dir>/lumina.sqlite3).",
    # Accounts
    "LUMINA_SEED_DEMO_USER": "Create demo@lumina.local / demo on first start (default: true).",
    # Persistence / polling
    "LUMINA_PERSIST_DEBOUNCE_SECONDS": "Quiet period before collections are written (default: 0.5).",
    "LUMINA_DUE_POLL_INTERVAL_SECONDS": "How often the due watcher looks at tasks (default: 10).",
    "LUMINA_DUE_WINDOW_SECONDS": "A task is reported if it fell due within this window (default: 60).",
    # Gamification
    "LUMINA_XP_PER_COMPLETION": "XP credited per completed task on paid plans (default: 50).",
    # Admin
    "LUMINA_STORAGE_QUOTA_BYTES": "Quota used for the admin storage percentage (default: 5 MiB).",
}
