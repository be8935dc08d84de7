"""Import orchestration.

- import_pipeline: end-to-end import of one uploaded file
"""
