"""Export documents, export files and tabular views."""
