from langchain_core.prompts import ChatPromptTemplate

REFUSAL_MESSAGE = (
    "I could not find sufficient evidence in the provided documents (PDF/TXT) "
    "to answer your question."
)

SYSTEM_POLICY = " ".join(
    [
        "You are a strict RAG assistant.",
        "Use only the provided sources as evidence.",
        "If the sources do not contain enough information to answer, say so clearly.",
        "Do not use outside knowledge.",
        "Do not fabricate citations.",
    ]
)

# Citations are rendered from retrieval metadata, so the model is asked for the answer only.
USER_TEMPLATE = "\n".join(
    [
        "Question: {question}",
        "",
        "Sources:",
        "{context}",
        "",
        "Output format:",
        "[Answer]",
        "(Concise, grounded strictly in the sources. Do not include a citations section.)",
    ]
)

GROUNDED_QA_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", SYSTEM_POLICY),
        ("human", USER_TEMPLATE),
    ]
)
