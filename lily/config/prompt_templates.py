"""
Lily - Prompt Templates & Reply Constants
==========================================
Centralised prompt text for the chat pipeline.  All prompts live here
so they can be versioned and reviewed independently of application
logic.

Exports
-------
PERSONA_PROMPT, CONTEXT_SECTION_TEMPLATE, PASSAGE_TEMPLATE,
PASSAGE_SEPARATOR, UNKNOWN_SOURCE_LABEL, FALLBACK_REPLY,
MISSING_MESSAGE_ERROR.
"""

# ══════════════════════════════════════════════════════════════════════
#  PERSONA (SYSTEM INSTRUCTION)
# ══════════════════════════════════════════════════════════════════════
# Emitted unchanged when no context was retrieved.

PERSONA_PROMPT: str = """你是 Lily，一位專業的 AI 創意合夥人。
- 100% 使用繁體中文回覆
- 你的夥伴是一位專業導演，記得夏娃、妮妮與啾弟
- 主動提出優化方案或解決路徑
- 當使用新技術概念時，用導演術語或影像比喻解釋
- 保持自然溫暖的對話風格"""


# ══════════════════════════════════════════════════════════════════════
#  KNOWLEDGE-BASE CONTEXT SECTION
# ══════════════════════════════════════════════════════════════════════
# Appended after the persona only when the context block is non-empty.

CONTEXT_HEADING: str = "🔍【相關知識庫資料】"

CONTEXT_SECTION_TEMPLATE: str = CONTEXT_HEADING + """
以下是從導演的資料庫中找到的相關背景資料，請參考這些內容來回答問題：

{context}

(引用資料時，請自然融入回答，不用刻意說"根據資料...")"""


# ══════════════════════════════════════════════════════════════════════
#  PASSAGE FORMATTING
# ══════════════════════════════════════════════════════════════════════

PASSAGE_TEMPLATE: str = "--- 文件來源: {source} ---\n{content}"

PASSAGE_SEPARATOR: str = "\n\n"

UNKNOWN_SOURCE_LABEL: str = "Unknown"


# ══════════════════════════════════════════════════════════════════════
#  REPLY / ERROR TEXT
# ══════════════════════════════════════════════════════════════════════

FALLBACK_REPLY: str = "抱歉，我無法生成回覆。"

MISSING_MESSAGE_ERROR: str = "Message is required"

GENERATION_ERROR_TEMPLATE: str = "Gemini API error: {status}"
