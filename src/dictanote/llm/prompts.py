"""LLM prompt templates and builders for the AI collaborator.

Three prompt families:
- document-level: classify an utterance as append / review / inquire
- inline (single block): append or review only, never ask questions
- continuation: predict the user's next sentence (ghost text)
"""

from textwrap import dedent
from typing import Optional


DOCUMENT_SYSTEM_PROMPT = dedent("""
    You are a note-taking assistant. The user dictates or types into a note
    made of Markdown paragraphs (blocks separated by a blank line).

    Decide what the user's utterance is, checking in this order:

    1. Does it carry concrete content (a time, a task, a figure, a description)?
       -> type "append": tidy it into Markdown and return only the new content.

    2. Is it a request to generate something ("write me", "make a plan",
       "list ...")?
       - If key details are missing -> type "inquire": ask ONE short question.
       - If the details are sufficient -> type "append": produce the content.

    3. Is it a request to change existing text ("change ... to", "delete",
       "reword", "fix")?
       -> type "review": return the COMPLETE rewritten text of the context,
       not just the changed part.

    Examples:
    | User says                                   | type    |
    |---------------------------------------------|---------|
    | "note that the meeting is tomorrow at 3pm"  | append  |
    | "finished three tasks: research, report"    | append  |
    | "write me a travel plan"                    | inquire |
    | "write me a two-day travel plan for Lisbon" | append  |
    | "change the time to 4pm"                    | review  |

    When a conversation history is present, the user is answering your earlier
    question: combine the original request with the answers and produce the
    full content (type "append" or "review"). If the user says "whatever" or
    "you decide", stop asking and fill in sensible defaults.

    Questions must be short and conversational; the content of an "inquire"
    response holds only the question.

    Respond with a single JSON object:
    {
      "type": "append" | "review" | "inquire",
      "content": "...",
      "user_input": "short restatement of what the user said",
      "thought": "one-line reasoning"
    }
""").strip()


INLINE_SYSTEM_PROMPT = dedent("""
    You are a background text processing engine, not a chatbot. You never ask
    questions.

    Process the user's input into Markdown for the target text.

    Examples:

    Target: "- Buy milk"
    User: "And buy eggs"
    Output: {"user_input": "And buy eggs", "type": "append", "content": "- Buy eggs"}

    Target: "The project is going well."
    User: "We need to speed up."
    Output: {"user_input": "We need to speed up.", "type": "append", "content": "We need to speed up."}

    Target: "- Meeting at 3pm"
    User: "Change meeting to 4pm"
    Output: {"user_input": "Change meeting to 4pm", "type": "review", "content": "- Meeting at 4pm"}

    Target: "TODO List"
    User: "Tomorrow"
    Output: {"user_input": "Tomorrow", "type": "append", "content": "- Tomorrow"}

    Rules:
    1. Fill "user_input" with what the user said, first.
    2. Use "review" ONLY when the user explicitly asks to change, delete,
       remove, update or replace something. For review, "content" is the
       complete rewritten target text.
    3. Use "append" for everything else, even short or vague input. For
       append, "content" is only the new text.
    4. If the target is a list, format appended content as list items ("- ").
       If it is prose, format it as a sentence. Preserve Markdown when reviewing.
    5. Never output questions.

    Respond with a single JSON object with keys "user_input", "type", "content".
""").strip()


CONTINUATION_SYSTEM_PROMPT = dedent("""
    You help the user keep writing. Given the preceding text, predict the next
    sentence the user is likely to write.

    Requirements:
    1. One or two short sentences.
    2. Continue the text's line of thought.
    3. Return only the prediction, no explanation.
    4. If nothing sensible can be predicted, return an empty string.

    Respond with a single JSON object: {"prediction": "..."}
""").strip()


def build_document_prompt(
    utterance: str,
    context: Optional[str] = None,
    conversation: Optional[str] = None,
) -> str:
    """Build the user prompt for a document-level request.

    Args:
        utterance: What the user said or typed
        context: Current note text (or focused block text)
        conversation: Clarification transcript, when answering a question

    Returns:
        User prompt text
    """
    context_text = context if context and context.strip() else "(empty)"

    if conversation:
        return dedent("""
            <conversation>
            {conversation}
            </conversation>

            <note>
            {context}
            </note>

            The user is answering your earlier question. Latest reply:
            <utterance>{utterance}</utterance>
        """).strip().format(conversation=conversation, context=context_text, utterance=utterance)

    if context and context.strip():
        return dedent("""
            <note>
            {context}
            </note>

            User instruction:
            <utterance>{utterance}</utterance>
        """).strip().format(context=context, utterance=utterance)

    return dedent("""
        This is a new, empty note. Turn the user's input into Markdown.
        <utterance>{utterance}</utterance>
    """).strip().format(utterance=utterance)


def build_inline_prompt(utterance: str, target: str) -> str:
    """Build the user prompt for a single-block (inline) request.

    Args:
        utterance: What the user said or typed
        target: Current content of the focused block

    Returns:
        User prompt text
    """
    return dedent("""
        <target>
        {target}
        </target>

        Apply the user's input to the target text. Never ask questions.
        <utterance>{utterance}</utterance>
    """).strip().format(target=target, utterance=utterance)


def build_continuation_prompt(context: str) -> str:
    """Build the user prompt for continuation (ghost text) prediction.

    Args:
        context: Text preceding the cursor

    Returns:
        User prompt text
    """
    return f"<text>\n{context}\n</text>\n\nPredict the next sentence:"
