"""Prompt templates for answering, fallback, query expansion and judging.

Every template requires the model to reply in the language of the user's
question, since answers are rendered to the end user as-is.
"""

from typing import Dict, List, Optional, Sequence

from rag_assistant.core.types import FragmentResult, PromptType

PERSONAS: Dict[PromptType, str] = {
    PromptType.ONBOARDING: (
        "You are an onboarding assistant for the company. Your role is to help new "
        "employees understand company policies, procedures, and guidelines."
    ),
    PromptType.POLICY: (
        "You are a company policy assistant. Your role is to help employees understand "
        "company policies and regulations. Be precise and highlight requirements or restrictions."
    ),
    PromptType.PROCEDURE: (
        "You are a procedure assistant. Your role is to help employees follow company "
        "procedures correctly. Prefer step-by-step, actionable guidance."
    ),
    PromptType.GENERAL: (
        "You are a company assistant. Your role is to help employees with questions about the company."
    ),
}

ANSWER_TEMPLATE = """{persona} Answer the following question based ONLY on the provided documentation.
{history}
DOCUMENTATION CONTEXT:
{context}

USER QUESTION:
{query}

INSTRUCTIONS:
- Provide a brief summary (1-2 sentences) directly answering the question
- Organize detailed information into logical sections
- Each section should have a type: "info" (general), "steps" (procedures), "warning" (important notes), "tip" (helpful advice)
- Include key takeaways as bullet points when relevant
- Suggest related topics the user might want to explore
- Use markdown formatting within section content
- Respond in the SAME LANGUAGE as the user's question
- If the documentation doesn't fully cover the topic, be transparent about it"""

FALLBACK_TEMPLATE = """You are an onboarding assistant for a company. The user asked a question, but there are NO relevant documents available to answer it.
{sector_context}
USER QUESTION: "{query}"

INSTRUCTIONS:
- Acknowledge that you don't have specific information about this topic in the available documentation
- Be empathetic and helpful in your response
- Suggest general alternatives (e.g., contact HR, check the company intranet, ask their manager)
- If the question seems related to common onboarding topics, mention that the documentation might not have been uploaded yet
- Keep the response concise (2-3 sentences max)
- Respond in the SAME LANGUAGE as the user's question

RESPONSE:"""

EXPANSION_TEMPLATE = """You are a query expansion assistant for a company knowledge base. Your job is to ENRICH a user's short question so that a vector similarity search can find more relevant documents.

USER QUERY: "{query}"

INSTRUCTIONS:
- Add synonyms, related terms, and contextual keywords that documents might contain
- Keep the original intent intact
- Include the original keywords
- Add domain-specific variations (e.g., "holidays" -> "holidays, public holidays, national holidays, bank holidays, non-working days, calendar")
- Respond in the SAME LANGUAGE as the user's query
- Return ONLY the expanded query text, nothing else: no explanations, no quotes
- Keep it to a single paragraph (max 50 words)

EXPANDED QUERY:"""

FAITHFULNESS_TEMPLATE = """You are an expert evaluator assessing the FAITHFULNESS of an AI assistant's response.

FAITHFULNESS measures whether the response is factually grounded in the provided context documents.
A faithful response only contains claims that are supported by the context.

CONTEXT DOCUMENTS:
{context}

USER QUESTION:
{query}

AI RESPONSE:
{response}

EVALUATION CRITERIA:
- Score 1.0: All claims in the response are directly supported by the context
- Score 0.8: Most claims are supported; minor inferences are reasonable
- Score 0.6: Some claims are supported but there are unsupported inferences
- Score 0.4: Significant claims lack context support
- Score 0.2: Most claims are not grounded in the context
- Score 0.0: The response is entirely fabricated or contradicts the context

Special cases:
- If the response says it doesn't have information, and the context truly doesn't contain relevant info, score 1.0
- If the context is empty, any substantive response should score 0.0

Evaluate the faithfulness and respond with a JSON object containing:
- "score": a number between 0.0 and 1.0
- "status": "PASS" if score >= {threshold}, "FAIL" if score < {threshold}
- "reasoning": a brief explanation (1-2 sentences) of your assessment"""

RELEVANCY_TEMPLATE = """You are an expert evaluator assessing the RELEVANCY of an AI assistant's response.

RELEVANCY measures whether the response directly addresses the user's question.
A relevant response is on-topic, answers what was asked, and doesn't include excessive unrelated information.

USER QUESTION:
{query}

AI RESPONSE:
{response}

EVALUATION CRITERIA:
- Score 1.0: Directly and completely answers the question
- Score 0.8: Answers the question well with minor tangential information
- Score 0.6: Partially addresses the question but misses some aspects
- Score 0.4: Only tangentially related to the question
- Score 0.2: Mostly off-topic with only minor relevance
- Score 0.0: Completely unrelated to the question

Special cases:
- If the response appropriately says it cannot answer, score based on whether that's the correct behavior
- A partial answer is better than no answer (score accordingly)

Evaluate the relevancy and respond with a JSON object containing:
- "score": a number between 0.0 and 1.0
- "status": "PASS" if score >= {threshold}, "FAIL" if score < {threshold}
- "reasoning": a brief explanation (1-2 sentences) of your assessment"""


class PromptBuilder:
    """Renders the pipeline's prompts.

    Stateless; every method is a pure function of its arguments.
    """

    def build_context(self, fragments: Sequence[FragmentResult]) -> str:
        """Number fragment contents as ``[n] content`` blocks."""
        if not fragments:
            return "No relevant documentation found."
        return "\n\n".join(f"[{i}] {f.content}" for i, f in enumerate(fragments, 1))

    def build_history(self, history: Optional[List[str]]) -> str:
        if not history:
            return ""
        return "\nCONVERSATION HISTORY:\n" + "\n".join(history) + "\n"

    def build_answer_prompt(
        self,
        query: str,
        fragments: Sequence[FragmentResult],
        prompt_type: PromptType = PromptType.ONBOARDING,
        conversation_history: Optional[List[str]] = None,
    ) -> str:
        """Build the structured-answer prompt.

        Args:
            query: User question
            fragments: Retrieved fragments, in rank order
            prompt_type: Assistant persona
            conversation_history: Prior turns, oldest first

        Returns:
            Prompt text
        """
        return ANSWER_TEMPLATE.format(
            persona=PERSONAS[prompt_type],
            history=self.build_history(conversation_history),
            context=self.build_context(fragments),
            query=query,
        )

    def build_fallback_prompt(self, query: str, sector_name: Optional[str] = None) -> str:
        """Build the no-context prompt."""
        sector_context = (
            f'\nThe user is asking in the context of the "{sector_name}" department/sector.\n'
            if sector_name
            else ""
        )
        return FALLBACK_TEMPLATE.format(sector_context=sector_context, query=query)

    def build_expansion_prompt(self, query: str) -> str:
        return EXPANSION_TEMPLATE.format(query=query)

    def build_faithfulness_prompt(
        self,
        query: str,
        response: str,
        context: Sequence[str],
        threshold: float = 0.6,
    ) -> str:
        context_block = "\n\n".join(f"[Document {i}]:\n{c}" for i, c in enumerate(context, 1))
        return FAITHFULNESS_TEMPLATE.format(
            context=context_block or "(no context)",
            query=query,
            response=response,
            threshold=threshold,
        )

    def build_relevancy_prompt(self, query: str, response: str, threshold: float = 0.6) -> str:
        return RELEVANCY_TEMPLATE.format(query=query, response=response, threshold=threshold)
