"""
Bundled sample documentation used for demos.

Loaded by ``RAGService.ingest_samples``; chunks are tagged with the
``openai-docs`` source so they never outrank uploaded content.
"""

from typing import List
from pydantic import BaseModel

SAMPLE_SOURCE = "openai-docs"


class SamplePage(BaseModel):
    url: str
    title: str
    content: str


SAMPLE_PAGES: List[SamplePage] = [
    SamplePage(
        url="https://platform.openai.com/docs/guides/embeddings",
        title="Embeddings",
        content="""# What are embeddings
An embedding is a list of floating point numbers that represents the meaning of a piece of text. Texts with related meaning produce vectors that are close to each other, and unrelated texts produce vectors that are far apart.

# Common uses
- Search: rank results by how relevant they are to a query
- Clustering: group similar pieces of text together
- Recommendations: suggest items with related descriptions
- Classification: assign text to the label whose examples it is closest to

# Models
- text-embedding-3-small: efficient general purpose model with 1536 dimensions
- text-embedding-3-large: highest quality model with up to 3072 dimensions

# Measuring similarity
Cosine similarity is the recommended way to compare embeddings. Because the returned vectors are normalized to length one, cosine similarity and the dot product give the same ranking.""",
    ),
    SamplePage(
        url="https://platform.openai.com/docs/api-reference/chat",
        title="Chat Completions API",
        content="""# Overview
The chat completions endpoint takes a list of messages that make up a conversation and returns the next message generated by the model.

Endpoint: POST https://api.openai.com/v1/chat/completions

# Request body
- model: the ID of the model to use
- messages: the conversation so far, each with a role and content
- temperature: sampling temperature between 0 and 2
- max_tokens: the maximum number of tokens to generate

# Roles
Messages use the system role for instructions, the user role for requests and the assistant role for earlier model replies.

# Response
The response contains a choices array. Each choice holds the generated message and a finish_reason explaining why generation stopped.""",
    ),
    SamplePage(
        url="https://platform.openai.com/docs/guides/rate-limits",
        title="Rate Limits",
        content="""# Why rate limits exist
Rate limits cap how many requests and tokens an organization can send in a period of time. They protect the service from abuse and keep capacity fair for everyone.

# Handling 429 errors
When a limit is exceeded the API answers with HTTP 429. Retry the request with exponential backoff: wait a short random delay, then double the delay after each failed attempt up to a maximum. If the response includes a Retry-After header, wait at least that long.

# Quota errors
An insufficient_quota error means the account has run out of credits. Retrying will not help; check the billing settings instead.""",
    ),
]
