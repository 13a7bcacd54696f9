"""
utils/line_utils.py

Purpose: LINE message builders

- Text, quick-reply and flex payloads
- Postback / message / date-picker actions
- Drill-down cards (building, floor, room)
- Pay-info, slip result, maintenance and move-out cards
"""

from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from utils import constants
from utils.time_utils import period_label

MAX_TEXT_LENGTH = 5000
MAX_LABEL_LENGTH = 20
MAX_QUICK_REPLY_ITEMS = 13


# ============================================================
# BASIC PAYLOADS
# ============================================================

def create_text_message(text: str) -> Dict[str, Any]:
    """
    Creates a plain text message, truncated to LINE's 5000 character limit.
    """
    return {"type": "text", "text": (text or "")[:MAX_TEXT_LENGTH]}


def normalize_messages(messages: Sequence[Union[str, Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """
    Turns plain strings into text messages, drops empties.
    """
    normalized = []
    for message in messages or []:
        if isinstance(message, str):
            if message:
                normalized.append(create_text_message(message))
        elif message:
            normalized.append(message)
    return normalized


def message_action(label: str, text: Optional[str] = None) -> Dict[str, Any]:
    return {"type": "message", "label": label[:MAX_LABEL_LENGTH], "text": text or label}


def postback_action(label: str, data: str, display_text: Optional[str] = None) -> Dict[str, Any]:
    action = {"type": "postback", "label": label[:MAX_LABEL_LENGTH], "data": data}
    if display_text:
        action["displayText"] = display_text
    return action


def date_picker_action(label: str, data: str, initial: date, min_date: date, max_date: date) -> Dict[str, Any]:
    return {
        "type": "datetimepicker",
        "label": label[:MAX_LABEL_LENGTH],
        "data": data,
        "mode": "date",
        "initial": initial.isoformat(),
        "min": min_date.isoformat(),
        "max": max_date.isoformat(),
    }


def create_quick_reply_message(text: str, actions: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Text message with quick-reply chips (max 13).

    Example:
        create_quick_reply_message("ยืนยัน?", [postback_action("ใช่", "LINK_ACCEPT=r1:t1")])
    """
    message = create_text_message(text)
    message["quickReply"] = {
        "items": [{"type": "action", "action": a} for a in actions[:MAX_QUICK_REPLY_ITEMS]]
    }
    return message


def create_flex_message(alt_text: str, contents: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "flex", "altText": alt_text[:400], "contents": contents}


def format_amount(amount: Any) -> str:
    """
    1000 -> "1,000", 1000.5 -> "1,000.50"
    """
    value = float(amount or 0)
    if value == int(value):
        return f"{int(value):,}"
    return f"{value:,.2f}"


def _text(text: str, **kwargs) -> Dict[str, Any]:
    component = {"type": "text", "text": text or "-", "wrap": True}
    component.update(kwargs)
    return component


def _row(label: str, value: str) -> Dict[str, Any]:
    return {
        "type": "box",
        "layout": "horizontal",
        "contents": [
            _text(label, size="sm", color="#888888", flex=2),
            _text(value, size="sm", color="#111111", flex=4, align="end"),
        ],
    }


def _bubble(title: str, body: List[Dict[str, Any]], color: str = "#1e88e5",
            footer: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    bubble = {
        "type": "bubble",
        "header": {
            "type": "box",
            "layout": "vertical",
            "backgroundColor": color,
            "contents": [_text(title, weight="bold", color="#ffffff", size="lg")],
        },
        "body": {"type": "box", "layout": "vertical", "spacing": "sm", "contents": body},
    }
    if footer:
        bubble["footer"] = {"type": "box", "layout": "vertical", "spacing": "sm", "contents": footer}
    return bubble


def _button(action: Dict[str, Any], style: str = "secondary") -> Dict[str, Any]:
    return {"type": "button", "style": style, "height": "sm", "action": action}


# ============================================================
# DRILL-DOWN CARDS
# ============================================================

def create_selection_card(
    title: str,
    options: List[Tuple[str, str]],
    back_data: Optional[str] = None,
) -> Dict[str, Any]:
    """
    A card with one postback button per option.

    Args:
        title: Card header
        options: (label, postback data) pairs
        back_data: Optional postback for a "ย้อนกลับ" button
    """
    buttons = [_button(postback_action(label, data, display_text=label)) for label, data in options]
    if back_data:
        buttons.append(_button(postback_action("ย้อนกลับ", back_data), style="link"))
    return create_flex_message(title, _bubble(title, [_text(title, size="sm")], footer=buttons))


def create_building_card(title: str, buildings: List[Dict[str, Any]], key: str) -> Dict[str, Any]:
    options = [(b.get("name") or b.get("code") or "-", f"{key}={b['_id']}") for b in buildings]
    return create_selection_card(title, options)


def create_floor_card(title: str, building_id: str, floors: List[int], key: str,
                      back_data: Optional[str] = None) -> Dict[str, Any]:
    options = [(f"ชั้น {f}", f"{key}={building_id}:{f}") for f in floors]
    return create_selection_card(title, options, back_data)


def create_room_card(title: str, rooms: List[Dict[str, Any]], key: str,
                     back_data: Optional[str] = None) -> Dict[str, Any]:
    options = [(f"ห้อง {r.get('number')}", f"{key}={r['_id']}") for r in rooms[:constants.MAX_ROOM_BUTTONS]]
    return create_selection_card(title, options, back_data)


# ============================================================
# PAYMENT
# ============================================================

def create_pay_info_card(invoice: Dict[str, Any], room_number: str, bank: Dict[str, str]) -> Dict[str, Any]:
    """
    Invoice summary with the dormitory bank account.
    """
    period = period_label(invoice.get("month"), invoice.get("year"))
    body = [
        _row("ห้อง", room_number),
        _row("รอบบิล", period),
        _row("ยอดชำระ", f"{format_amount(invoice.get('total_amount'))} บาท"),
    ]
    if bank.get("account_no"):
        body += [
            _row("ธนาคาร", bank.get("bank_name") or "-"),
            _row("เลขบัญชี", bank.get("account_no")),
            _row("ชื่อบัญชี", bank.get("account_name") or "-"),
        ]
    body.append(_text(constants.PAY_SEND_SLIP_PROMPT, size="xs", color="#888888"))
    return create_flex_message(f"ชำระค่าห้อง {room_number} {period}", _bubble("ชำระค่าห้อง", body))


def create_slip_result_card(kind: str, fields: Dict[str, str]) -> Dict[str, Any]:
    """
    SUCCESS / DUPLICATE / INVALID result card.
    """
    title, color = {
        "SUCCESS": (constants.SLIP_TITLE_SUCCESS, constants.SLIP_COLOR_SUCCESS),
        "DUPLICATE": (constants.SLIP_TITLE_DUPLICATE, constants.SLIP_COLOR_DUPLICATE),
    }.get(kind, (constants.SLIP_TITLE_INVALID, constants.SLIP_COLOR_INVALID))

    body = [_row("ห้อง", fields.get("room", "-")), _row("รอบบิล", fields.get("period", "-"))]
    if kind == "SUCCESS":
        body += [
            _row("ยอดเงิน", f"{fields.get('amount', '-')} บาท"),
            _row("บัญชีปลายทาง", fields.get("dest", "—")),
        ]
    body.append(_row("เวลาโอน", fields.get("when", "—")))
    if kind == "DUPLICATE":
        body.append(_text(constants.SLIP_DUPLICATE_NOTE, size="sm", color=color))
    elif kind != "SUCCESS":
        body.append(_text(fields.get("reason") or constants.SLIP_TITLE_INVALID, size="sm", color=color))
        body.append(_text(constants.SLIP_INVALID_NOTE, size="xs", color="#888888"))

    return create_flex_message(title, _bubble(title, body, color=color))


def create_unpaid_list_text(rows: List[Tuple[str, Dict[str, Any]]], header: Optional[str] = None) -> str:
    """
    Plain-text list of unpaid invoices as (room number, invoice) pairs.
    """
    if not rows:
        return constants.UNPAID_NONE
    lines = [header] if header else []
    for room_number, invoice in rows:
        lines.append(
            f"ห้อง {room_number} | {period_label(invoice.get('month'), invoice.get('year'))} | "
            f"{format_amount(invoice.get('total_amount'))} บาท"
        )
    return "\n".join(lines)


# ============================================================
# MOVE-OUT
# ============================================================

def create_tenant_moveout_card(room_number: str, today: date, max_date: date) -> Dict[str, Any]:
    """
    Day presets, end of month and a calendar picker.
    """
    buttons = [
        _button(message_action(f"อีก {d} วัน", f"ย้ายออกอีก {d} วัน"))
        for d in constants.MOVEOUT_PRESET_DAYS
    ]
    buttons.append(_button(message_action("สิ้นเดือน", constants.MOVEOUT_MONTH_END_TEXT)))
    buttons.append(_button(
        date_picker_action("เลือกวันที่", "TENANT_MOVEOUT_DATE", today, today, max_date),
        style="primary",
    ))
    body = [_row("ห้อง", room_number), _text(constants.TENANT_MOVEOUT_PROMPT, size="sm")]
    return create_flex_message("แจ้งย้ายออก", _bubble("แจ้งย้ายออก", body, footer=buttons))


def create_moveout_summary_card(info: Dict[str, Any], water_url: str, electric_url: str) -> Dict[str, Any]:
    body = [
        _row("ห้อง", info.get("room_number") or "-"),
        _row("ผู้เช่า", info.get("tenant_name") or "-"),
        _row("เบอร์โทร", info.get("tenant_phone") or "-"),
    ]
    footer = [
        _button({"type": "uri", "label": "รูปมิเตอร์น้ำ", "uri": water_url}),
        _button({"type": "uri", "label": "รูปมิเตอร์ไฟ", "uri": electric_url}),
    ]
    return create_flex_message(
        f"สรุปแจ้งย้ายออก ห้อง {info.get('room_number') or '-'}",
        _bubble("สรุปแจ้งย้ายออก", body, color="#8e44ad", footer=footer),
    )


# ============================================================
# MAINTENANCE
# ============================================================

def create_maintenance_question() -> Dict[str, Any]:
    return create_quick_reply_message(
        constants.MAINTENANCE_ASK_IMAGE,
        [
            message_action(constants.MAINTENANCE_WITH_PHOTO),
            message_action(constants.MAINTENANCE_WITHOUT_PHOTO),
        ],
    )


def create_maintenance_notify_card(request: Dict[str, Any], room_number: str, detail: str,
                                   tenant_name: Optional[str], image_urls: Sequence[str]) -> Dict[str, Any]:
    """
    Staff card with done / not-done acknowledgment buttons.
    """
    body = [
        _row("ห้อง", room_number),
        _row("ผู้แจ้ง", tenant_name or "-"),
        _text(detail, size="sm"),
    ]
    if image_urls:
        body.append(_text(f"รูปประกอบ {len(image_urls)} รูป", size="xs", color="#888888"))
    footer = [
        _button(postback_action("ซ่อมเสร็จแล้ว", f"MAINT_DONE={request['_id']}"), style="primary"),
        _button(postback_action("ยังไม่เสร็จ", f"MAINT_NOT_DONE={request['_id']}")),
    ]
    footer += [
        _button({"type": "uri", "label": f"รูปที่ {i}", "uri": url}, style="link")
        for i, url in enumerate(image_urls[:3], start=1)
    ]
    return create_flex_message(
        f"{constants.MAINTENANCE_NOTIFY_TITLE} ห้อง {room_number}",
        _bubble(constants.MAINTENANCE_NOTIFY_TITLE, body, color="#e67e22", footer=footer),
    )


# ============================================================
# LINKING
# ============================================================

def create_link_request_message(room_id: str, room_number: str, tenant_id: str) -> Dict[str, Any]:
    return create_quick_reply_message(
        constants.LINK_REQUEST_SENT.format(room=room_number),
        [
            postback_action(constants.LINK_ACCEPT_LABEL, f"LINK_ACCEPT={room_id}:{tenant_id}"),
            postback_action(constants.LINK_REJECT_LABEL, f"LINK_REJECT={room_id}"),
        ],
    )
