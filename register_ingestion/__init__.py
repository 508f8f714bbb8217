"""
register_ingestion -- Turns published register interests into payments.

Provides pure parsing, field extraction and payer classification over the
open-ended interest field lists, plus source adapters for the public
register APIs.

Architecture:
    register_ingestion/ is a top-level package. It imports only from
    register_kernel (logging, exceptions). Nothing here touches the database.
"""
