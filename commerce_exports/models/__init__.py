"""Commerce Exports Models.

ORM models (database tables):
    from commerce_exports.models.orm import ExportJob, Product

Pydantic contracts (API request/response, queue payloads):
    from commerce_exports.models.contracts import ExportJobPayload

Enums:
    from commerce_exports.models.enums import ExportStatus
"""
