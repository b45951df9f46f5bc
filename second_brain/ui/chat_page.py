"""NiceGUI chat interface backed by the streaming chat client."""

import os
import re

import httpx
from nicegui import ui

from second_brain.client.chat_client import ChatClient, ChatRequestError, Conversation, MessageBuffer

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")

SUGGESTIONS = [
    "What did I work on last week?",
    "Summarize my recent documents",
    "What are the key themes across my notes?",
]

STATUS_ICONS = {
    "pending": ("schedule", "text-amber-500"),
    "processing": ("autorenew", "text-indigo-500"),
    "completed": ("check_circle", "text-green-600"),
    "failed": ("error", "text-red-600"),
}

MODALITY_ICONS = {
    "document": "description",
    "audio": "mic",
    "web": "language",
    "text": "notes",
    "image": "image",
}

UPLOAD_MODALITIES = {"document": "Document", "audio": "Audio", "image": "Image"}
IN_PROGRESS = {"pending", "processing"}
ITEM_POLL_SECONDS = 3.0


def markdown_to_html(text: str) -> str:
    """Convert the markdown subset the model uses to HTML.

    Supports: code blocks, inline code, bold, italic, links, line breaks.
    """
    text = text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    text = re.sub(
        r"```(\w*)\n?([\s\S]*?)```",
        r'<pre class="bg-gray-800 text-gray-100 rounded-lg p-3 my-2 overflow-x-auto text-xs"><code>\2</code></pre>',
        text,
    )
    text = re.sub(r"`([^`]+)`", r'<code class="bg-gray-200 px-1 rounded text-xs">\1</code>', text)
    text = re.sub(r"\*\*(.+?)\*\*", r"<strong>\1</strong>", text)
    text = re.sub(r"\*([^*]+)\*", r"<em>\1</em>", text)
    text = re.sub(
        r"\[([^\]]+)\]\(([^)]+)\)",
        r'<a href="\2" class="text-indigo-600 underline" target="_blank">\1</a>',
        text,
    )
    return text.replace("\n", "<br>")


CUSTOM_CSS = """
<style>
    body { background: #f5f5f5; }
    .message-user { background: #4f46e5; color: white; border-radius: 18px 18px 4px 18px; }
    .message-assistant { background: #f3f4f6; color: #1f2937; border-radius: 18px 18px 18px 4px; }
</style>
"""


def _api_client(timeout: float = 30.0) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=API_BASE_URL, timeout=timeout)


async def _api_get(path: str) -> list[dict]:
    async with _api_client() as client:
        response = await client.get(path)
        response.raise_for_status()
        return response.json()


async def _api_post(path: str, payload: dict) -> None:
    async with _api_client() as client:
        response = await client.post(path, json=payload)
        response.raise_for_status()


async def _api_upload(name: str, content: bytes, content_type: str, modality: str) -> None:
    async with _api_client(timeout=60.0) as client:
        response = await client.post(
            "/knowledge/upload",
            files={"file": (name, content, content_type or "application/octet-stream")},
            data={"modality": modality},
        )
        response.raise_for_status()


async def _api_delete(path: str) -> None:
    async with _api_client() as client:
        response = await client.delete(path)
        response.raise_for_status()


@ui.page("/")
def chat_page() -> None:
    """Main page: knowledge sidebar and chat."""
    ui.add_head_html(CUSTOM_CSS)
    conversation = Conversation()
    client = ChatClient(API_BASE_URL)
    labels: dict[str, ui.html] = {}
    state = {"streaming": False, "in_progress": False}

    messages_container: ui.column
    items_container: ui.column
    input_field: ui.textarea
    send_btn: ui.button
    modality_select: ui.toggle
    upload: ui.upload

    def render_message(msg: MessageBuffer) -> None:
        is_user = msg.role == "user"
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"
        with ui.row().classes(f"w-full {align}"):
            with ui.element("div").classes(f"max-w-[75%] px-4 py-3 {bubble}"):
                content = msg.content.replace("\n", "<br>") if is_user else markdown_to_html(msg.content)
                labels[msg.id] = ui.html(content, sanitize=False).classes("text-sm leading-relaxed")

    def refresh_messages() -> None:
        messages_container.clear()
        labels.clear()
        with messages_container:
            if not conversation.messages:
                with ui.column().classes("w-full items-center gap-3 py-16"):
                    ui.icon("psychology").classes("text-5xl text-indigo-300")
                    ui.label("Your Second Brain").classes("text-xl font-semibold")
                    ui.label("Ask questions about your knowledge base.").classes("text-gray-500")
                    with ui.row().classes("gap-2 justify-center"):
                        for suggestion in SUGGESTIONS:
                            ui.button(
                                suggestion, on_click=lambda s=suggestion: send(s)
                            ).props("outline rounded no-caps size=sm")
            else:
                for msg in conversation.messages:
                    render_message(msg)

    def on_update(buffer_id: str, text: str) -> None:
        label = labels.get(buffer_id)
        if label is None:
            # First delta of a new buffer
            refresh_messages()
            return
        label.set_content(markdown_to_html(text))

    async def send(text: str) -> None:
        text = text.strip()
        if not text or state["streaming"]:
            return

        state["streaming"] = True
        send_btn.disable()
        try:
            # The user message is rendered with the first delta
            await client.send(conversation, text, on_update=on_update)
        except ChatRequestError as e:
            ui.notify(e.message, type="negative")
        finally:
            state["streaming"] = False
            send_btn.enable()
            refresh_messages()

    async def send_input() -> None:
        text = input_field.value
        input_field.value = ""
        await send(text)

    async def refresh_items() -> None:
        try:
            items = await _api_get("/knowledge")
        except httpx.HTTPError as e:
            ui.notify(f"Could not load knowledge items: {e}", type="warning")
            return
        state["in_progress"] = any(item["status"] in IN_PROGRESS for item in items)
        items_container.clear()
        with items_container:
            if not items:
                ui.label("No items yet").classes("text-sm text-gray-400")
            for item in items:
                icon, color = STATUS_ICONS.get(item["status"], STATUS_ICONS["pending"])
                with ui.row().classes("w-full items-center gap-2 no-wrap"):
                    ui.icon(MODALITY_ICONS.get(item["modality"], "description")).classes("text-gray-500")
                    ui.label(item["title"]).classes("text-sm truncate flex-grow")
                    ui.icon(icon).classes(color).tooltip(item["status"])
                    ui.button(
                        icon="delete", on_click=lambda i=item: delete_item(i)
                    ).props("flat round dense size=sm color=grey")

    async def refresh_while_in_progress() -> None:
        if state["in_progress"]:
            await refresh_items()

    async def delete_item(item: dict) -> None:
        try:
            await _api_delete(f"/knowledge/{item['id']}")
        except httpx.HTTPError:
            ui.notify("Failed to delete item.", type="negative")
            return
        ui.notify(f"Removed {item['title']}", type="positive")
        await refresh_items()

    async def handle_upload(e) -> None:
        try:
            await _api_upload(
                e.file.name, await e.file.read(), e.file.content_type, modality_select.value
            )
        except httpx.HTTPStatusError as error:
            detail = error.response.json().get("detail", "Upload failed.")
            ui.notify(str(detail), type="negative")
            return
        except httpx.HTTPError:
            ui.notify("Upload failed.", type="negative")
            return
        finally:
            upload.reset()
        ui.notify(f"{e.file.name} is being processed.", type="positive")
        await refresh_items()

    async def add_note() -> None:
        if not note_title.value.strip() or not note_text.value.strip():
            return
        try:
            await _api_post("/knowledge/text", {"title": note_title.value, "text": note_text.value})
        except httpx.HTTPError:
            ui.notify("Failed to save text.", type="negative")
            return
        note_title.value = ""
        note_text.value = ""
        ui.notify("Your note has been saved to the knowledge base.", type="positive")
        await refresh_items()

    async def add_url() -> None:
        if not url_input.value.strip():
            return
        try:
            await _api_post("/knowledge/url", {"url": url_input.value})
        except httpx.HTTPError:
            ui.notify("Failed to process URL.", type="negative")
            return
        url_input.value = ""
        ui.notify("The webpage is being processed.", type="positive")
        await refresh_items()

    def new_chat() -> None:
        conversation.clear()
        refresh_messages()

    # === UI Layout ===
    with ui.row().classes("w-full h-screen no-wrap gap-0"):
        with ui.column().classes("w-80 h-full bg-white border-r p-4 gap-3"):
            ui.label("Knowledge").classes("text-lg font-semibold")
            note_title = ui.input(placeholder="Note title").classes("w-full")
            note_text = ui.textarea(placeholder="Enter your notes...").classes("w-full")
            ui.button("Save note", on_click=add_note).classes("w-full")
            url_input = ui.input(placeholder="https://example.com/article").classes("w-full")
            ui.button("Add URL", on_click=add_url).classes("w-full")
            modality_select = ui.toggle(UPLOAD_MODALITIES, value="document").props("dense no-caps")
            upload = (
                ui.upload(on_upload=handle_upload, auto_upload=True, label="Upload file")
                .props("flat bordered")
                .classes("w-full")
            )
            ui.separator()
            with ui.scroll_area().classes("flex-grow w-full"):
                items_container = ui.column().classes("w-full gap-2")
            ui.button(icon="refresh", on_click=refresh_items).props("flat round")

        with ui.column().classes("flex-grow h-full gap-0"):
            with ui.row().classes("w-full px-5 py-3 items-center justify-between bg-indigo-600"):
                ui.label("Second Brain").classes("text-lg font-semibold text-white")
                ui.button(icon="add", on_click=new_chat).props("flat round color=white")
            with ui.scroll_area().classes("flex-grow w-full bg-gray-50"):
                messages_container = ui.column().classes("w-full p-5 gap-4")
            with ui.row().classes("w-full p-4 gap-3 items-end bg-white border-t"):
                input_field = (
                    ui.textarea(placeholder="Ask your knowledge base...")
                    .props("autogrow borderless dense rows=1")
                    .classes("flex-grow")
                    .on("keydown.enter.prevent", send_input)
                )
                send_btn = ui.button(icon="send", on_click=send_input).props("round unelevated")

    refresh_messages()
    ui.timer(0.1, refresh_items, once=True)
    ui.timer(ITEM_POLL_SECONDS, refresh_while_in_progress)

