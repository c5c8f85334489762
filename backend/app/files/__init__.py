"""Document upload module for VoiceDoc.

Uploads are validated (type and size) at the transport boundary, stored in a
shared directory under generated names, run through text extraction, and
recorded in DuckDB.

Supported file types:
- Documents: pdf, docx (placeholder text), txt
- Images: jpg, jpeg, png (OCR)

Guest uploads are removed by the cleanup sweeper after 24 hours.
"""
