"""Application shell: settings, storage, services and the CLI around tradecore."""
