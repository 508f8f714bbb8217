"""
register_sync -- Keeps the database in step with the published register.

Architecture:
    register_sync/ is a top-level package above register_kernel,
    register_ingestion and register_config.  Nothing imports from it except
    scripts/ and tests/.
"""
