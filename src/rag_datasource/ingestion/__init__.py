"""
Ingestion — document loading, chunking, and embedding into the vector store.

This module is responsible for the offline pipeline that converts a
directory of text documents into embedded chunks stored in a vector
database.
"""
