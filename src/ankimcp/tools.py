"""Resource and tool definitions exposed over MCP."""

ANKI_RESOURCES = [
    {
        "uri": "anki://search/deckcurrent",
        "mimeType": "application/json",
        "name": "Current Deck",
        "description": "Current Anki deck",
    },
    {
        "uri": "anki://search/isdue",
        "mimeType": "application/json",
        "name": "Due cards",
        "description": "Cards in review and learning waiting to be studied",
    },
    {
        "uri": "anki://search/isnew",
        "mimeType": "application/json",
        "name": "New cards",
        "description": "All unseen cards",
    },
]

ANKI_TOOLS = [
    {
        "name": "update_cards",
        "description": "After the user answers cards you've quizzed them on, use this tool to mark them answered and update their ease",
        "inputSchema": {
            "type": "object",
            "properties": {
                "answers": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "cardId": {
                                "type": "number",
                                "description": "Id of the card to answer"
                            },
                            "ease": {
                                "type": "number",
                                "description": "Ease of the card between 1 (Again) and 4 (Easy)"
                            }
                        },
                        "required": ["cardId", "ease"]
                    }
                }
            },
            "required": ["answers"]
        }
    },
    {
        "name": "add_card",
        "description": (
            "Create a new flashcard in Anki for the user. Must use HTML formatting only. "
            "IMPORTANT FORMATTING RULES:\n"
            "1. Must use HTML tags for ALL formatting - NO markdown\n"
            "2. Use <br> for ALL line breaks\n"
            "3. For code blocks, use <pre> with inline CSS styling\n"
            "4. Example formatting:\n"
            "   - Line breaks: <br>\n"
            '   - Code: <pre style="background-color: transparent; padding: 10px; border-radius: 5px;">\n'
            "   - Lists: <ol> and <li> tags\n"
            "   - Bold: <strong>\n"
            "   - Italic: <em>"
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "front": {
                    "type": "string",
                    "description": "The front of the card. Must use HTML formatting only."
                },
                "back": {
                    "type": "string",
                    "description": "The back of the card. Must use HTML formatting only."
                }
            },
            "required": ["front", "back"]
        }
    },
    {
        "name": "get_due_cards",
        "description": "Returns a given number (num) of cards due for review.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "num": {
                    "type": "number",
                    "description": "Number of due cards to get"
                }
            },
            "required": ["num"]
        }
    },
    {
        "name": "get_new_cards",
        "description": "Returns a given number (num) of new and unseen cards.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "num": {
                    "type": "number",
                    "description": "Number of new cards to get"
                }
            },
            "required": ["num"]
        }
    },
]
