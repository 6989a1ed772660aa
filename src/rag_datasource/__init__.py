"""Retrieval-augmented context for conversational agents.

Ingestion splits documents into overlapping chunks, embeds them and upserts
them into a vector store; at query time the context assembler embeds the
user's message, fetches nearest neighbours and returns a cleaned context
block for the prompt.
"""

__version__ = "0.1.0"
