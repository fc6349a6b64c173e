"""
Generation Adapter

Turns a question and the formatted retrieval context into the prompt sent to
the chat model. Answers are grounded in the context; when general knowledge
is allowed, the model may add a separately labelled section.
"""

import threading
from typing import List, Optional

from stackrag.models.chunk import UPLOADED_SOURCE
from stackrag.providers.base import Message
from stackrag.providers.gateway import EmbeddingGateway

DOMAIN_LABELS = {
    UPLOADED_SOURCE: "the provided knowledge base",
    "openai-docs": "OpenAI's documentation",
    "universal-docs": "the reference documentation",
}

GENERAL_KNOWLEDGE_HEADING = "Additional context (general knowledge)"


def describe_domain(domain_label: Optional[str]) -> str:
    if not domain_label:
        return DOMAIN_LABELS[UPLOADED_SOURCE]
    return DOMAIN_LABELS.get(domain_label, f"the {domain_label} documents")


def build_messages(
    question: str,
    context: str,
    domain_label: Optional[str],
    allow_general_knowledge: bool = False,
) -> List[Message]:
    domain = describe_domain(domain_label)

    guidelines = [
        f"- Answer using the information in {domain} shown below",
        "- Never contradict the provided sources; "
        "if they conflict with what you know, say so",
        "- If the sources do not contain enough information to answer, say so clearly",
        "- Cite the sources you rely on by their [Source N] label",
        "- Include code examples from the sources when they are relevant",
    ]
    if allow_general_knowledge:
        guidelines.append(
            "- You may add background from general knowledge, but only in a final "
            f'section titled "{GENERAL_KNOWLEDGE_HEADING}", '
            "kept separate from the sourced answer"
        )
    else:
        guidelines.append("- Do not use knowledge that is not in the sources")

    system_prompt = (
        f"You are an expert assistant answering questions about {domain}.\n\n"
        "Guidelines:\n" + "\n".join(guidelines) + "\n\n"
        f"Context from {domain}:\n{context}"
    )
    user_prompt = (
        f"Question: {question}\n\n"
        f"Please provide a complete answer based on {domain} above."
    )

    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]


class GenerationAdapter:
    def __init__(
        self, gateway: EmbeddingGateway, allow_general_knowledge: bool = False
    ):
        self.gateway = gateway
        self.allow_general_knowledge = allow_general_knowledge

    def generate(
        self,
        question: str,
        context: str,
        domain_label: Optional[str],
        cancel: Optional[threading.Event] = None,
    ) -> str:
        messages = build_messages(
            question, context, domain_label, self.allow_general_knowledge
        )
        return self.gateway.chat_complete(messages, cancel=cancel)
