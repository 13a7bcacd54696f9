"""
utils/constants.py

Purpose: Centralized static content

- All user-facing messages (Thai)
- Command keywords and button labels
- Invoice / payment / maintenance status values

(Prevents hardcoding across the codebase)
"""

# ============================================================
# STATUS VALUES
# ============================================================

INVOICE_UNPAID_STATUSES = ["SENT", "DRAFT", "OVERDUE"]
INVOICE_PAID = "PAID"

PAYMENT_VERIFIED = "VERIFIED"
PAYMENT_PENDING = "PENDING"

MAINTENANCE_PENDING = "PENDING"
MAINTENANCE_IN_PROGRESS = "IN_PROGRESS"
MAINTENANCE_DONE = "DONE"

ROOM_MAINTENANCE = "MAINTENANCE"

PERMISSION_LINE_NOTIFY = "line_notify"

# ============================================================
# COMMAND KEYWORDS
# ============================================================

CMD_STAFF_PAYMENT = "รับชำระเงิน"
CMD_TENANT_MOVEOUT = "แจ้งย้ายออก"
CMD_STAFF_MOVEOUT = "แจ้งย้าย"
CMD_MAINTENANCE = "แจ้งซ่อม"
CMD_SEND_SLIP = "ส่งสลิป"
CMD_PAY_RENT = "ชำระค่าห้อง"
CMD_TENANT_UNPAID = ("ตรวจสอบยอดรายเดือน", "บิลคงค้าง", "ตรวจสอบค่าเช่า")
CMD_STAFF_UNPAID = "ห้องค้างชำระ"
CMD_STAFF_MAINTENANCE_LIST = "รายการแจ้งซ่อม"
CMD_BANK_ACCOUNT = "เลขบัญชีหอพัก"
CMD_CONTACT = "ติดต่อสอบถาม"
CMD_REGISTER_SESSION = "REGISTERSISOM"
CMD_REGISTER_STAFF = "REGISTERSTAFFSISOM"
CMD_REGISTER = "REGISTER"

MAINTENANCE_WITH_PHOTO = "ส่งรูปแจ้งซ่อม"
MAINTENANCE_WITHOUT_PHOTO = "ไม่ส่งรูปแจ้งซ่อม"
MAINTENANCE_DONE_KEYWORDS = ("เสร็จสิ้น", "ไม่มีรูปเพิ่ม", "ไม่มีรูปเพิ่มเติม")

MOVEOUT_PRESET_DAYS = (10, 15, 20, 25, 30)
MOVEOUT_MONTH_END_TEXT = "ออกสิ้นเดือน"
MOVEOUT_RECORD_TITLE = "แจ้งย้ายออก"
MAINTENANCE_RECORD_TITLE = "แจ้งซ่อม"

# Buildings with this name are listed last in drill-down cards
LAST_BUILDING_NAME = "บ้านน้อย"
MAX_ROOM_BUTTONS = 12
MAX_LIST_ITEMS = 10

# ============================================================
# GENERIC
# ============================================================

STAFF_ONLY_MESSAGE = "คำสั่งนี้สำหรับเจ้าหน้าที่เท่านั้น"
BUSY_MESSAGE = "คุณมีรายการที่ยังไม่เสร็จ กรุณาทำรายการเดิมให้เสร็จก่อน หรือรอ 3 นาทีให้หมดเวลา"
GENERIC_ERROR_MESSAGE = "ระบบขัดข้องชั่วคราว กรุณาลองใหม่อีกครั้ง"
UNKNOWN_ACTION_MESSAGE = "ไม่รู้จักคำสั่งนี้ กรุณาเริ่มใหม่จากเมนู"
NO_CONTRACT_FOR_ACCOUNT = "ไม่พบสัญญาที่ใช้งานอยู่สำหรับบัญชีนี้ กรุณาติดต่อเจ้าหน้าที่"
NO_ACTIVE_CONTRACT = "ไม่พบสัญญาที่ใช้งานอยู่"

# ============================================================
# SESSION EXPIRY
# ============================================================

EXPIRED_PAYMENT = "หมดเวลาส่งสลิป กรุณาเลือกห้องอีกครั้ง"
EXPIRED_STAFF_MOVEOUT = "หมดเวลาส่งรูป กรุณาเริ่มแจ้งย้ายออกใหม่"
EXPIRED_TENANT_MOVEOUT = "หมดเวลาทำรายการแจ้งย้ายออก กรุณาเริ่มแจ้งย้ายออกใหม่อีกครั้ง"
EXPIRED_STAFF_PAYMENT = "หมดเวลาทำรายการชำระบิล กรุณาเริ่มใหม่จากเมนูชำระเงิน"
EXPIRED_REGISTRATION = "หมดเวลาส่งเบอร์โทร กรุณาเริ่มคำสั่ง REGISTERSISOM ใหม่อีกครั้ง"
EXPIRED_MAINTENANCE = "หมดเวลาทำรายการแจ้งซ่อม กรุณาเริ่มแจ้งซ่อมใหม่อีกครั้ง"
EXPIRED_MAINTENANCE_ACK = "หมดเวลายืนยันงานซ่อม"

# ============================================================
# PAYMENT
# ============================================================

PAY_SEND_SLIP_PROMPT = "โปรดส่งสลิปเพื่อให้ระบบตรวจสอบและตัดยอด"
PAY_NO_TENANT = "ยังไม่พบข้อมูลผู้เช่า กรุณาลงทะเบียนด้วยคำสั่ง REGISTER <เบอร์โทร>"
PAY_NO_UNPAID_INVOICE = "ไม่พบบิลค้างชำระ"
PAY_NO_INVOICE_FOR_PERIOD = "ไม่พบบิลของเดือน {period}"
PAY_INVOICE_NOT_FOUND = "ไม่พบใบแจ้งหนี้ที่ต้องชำระ"
PAY_SLIP_SAVE_FAILED = "ระบบไม่สามารถบันทึกสลิปได้ กรุณาส่งใหม่อีกครั้ง"
PAY_SLIP_RECEIVED = "รับสลิปแล้ว ห้อง {room} อยู่ระหว่างตรวจสอบ"
PAY_PARTIAL = "ได้รับยอดชำระ {amount} บาท\nยอดคงเหลือ {remaining} บาท\nกรุณาชำระส่วนที่เหลือ"
PAY_NO_CONTEXT = "กรุณาเลือกบิลที่ต้องการชำระก่อน (พิมพ์: ชำระค่าห้อง <เดือน> <ปี>)"

STAFF_PAY_CHOOSE_BUILDING = "เลือกตึกที่ต้องการรับชำระ"
STAFF_PAY_NO_BUILDINGS = "ไม่พบตึกที่มีบิลค้างชำระ"
STAFF_PAY_NO_FLOORS = "ไม่พบชั้นที่มีบิลค้างชำระในตึกนี้"
STAFF_PAY_NO_ROOMS = "ไม่พบห้องที่มีบิลค้างชำระในชั้นนี้"
STAFF_PAY_NO_CONTRACT = "ไม่พบสัญญาที่ใช้งานอยู่สำหรับห้องนี้"
STAFF_PAY_NO_UNPAID = "ไม่มีบิลค้างชำระสำหรับห้องนี้"
STAFF_PAY_SELECT_BUILDING_FIRST = "กรุณาเลือกตึกก่อน"
STAFF_PAY_SELECT_FLOOR_FIRST = "กรุณาเลือกตึกและชั้นก่อน"
STAFF_NAV_BUILDING_FIRST = "กรุณาเลือกตึกก่อน (พิมพ์: ตึก <ชื่อ/รหัส>)"
STAFF_NAV_FLOOR_FIRST = "กรุณาเลือกตึกและชั้นก่อน (พิมพ์: ตึก ..., ชั้น ...)"
STAFF_NAV_BUILDING_NOT_FOUND = "ไม่พบตึก {token}"
STAFF_NAV_ROOM_NOT_FOUND = "ไม่พบห้อง {number} ในชั้น {floor}"
STAFF_NAV_BUILDING_SELECTED = "เลือกตึก {name} แล้ว กรุณาพิมพ์ ชั้น <เลขชั้น>"
STAFF_NAV_FLOOR_SELECTED = "เลือกชั้น {floor} แล้ว กรุณาพิมพ์ ห้อง <เลขห้อง>"

SLIP_TITLE_SUCCESS = "สลิปถูกต้อง"
SLIP_TITLE_DUPLICATE = "สลิปซ้ำ"
SLIP_TITLE_INVALID = "สลิปไม่ถูกต้อง"
SLIP_COLOR_SUCCESS = "#2ecc71"
SLIP_COLOR_DUPLICATE = "#f1c40f"
SLIP_COLOR_INVALID = "#e74c3c"
SLIP_DUPLICATE_NOTE = "สลิปนี้เคยถูกใช้ชำระแล้ว"
SLIP_INVALID_NOTE = "กรุณาตรวจสอบสลิปและส่งใหม่อีกครั้ง"

UNPAID_NONE = "ไม่มีบิลค้างชำระ"
STAFF_UNPAID_HEADER = "ห้องค้างชำระ"
BANK_INFO_MISSING = "ยังไม่ได้ตั้งค่าเลขบัญชีหอพัก กรุณาติดต่อเจ้าหน้าที่"
CONTACT_INFO_MISSING = "ยังไม่ได้ตั้งค่าช่องทางติดต่อ"

# ============================================================
# MOVE-OUT
# ============================================================

STAFF_MOVEOUT_CHOOSE_BUILDING = "เลือกตึกของห้องที่จะแจ้งย้ายออก"
STAFF_MOVEOUT_NO_BUILDINGS = "ไม่พบตึกที่มีผู้เช่า"
STAFF_MOVEOUT_NO_FLOORS = "ไม่พบชั้นที่มีผู้เช่าในตึกนี้"
STAFF_MOVEOUT_NO_ROOMS = "ไม่พบห้องที่มีผู้เช่าในชั้นนี้"
STAFF_MOVEOUT_NO_TENANT = "ไม่พบผู้เช่าปัจจุบันสำหรับห้องนี้"
STAFF_MOVEOUT_SELECT_FIRST = "กรุณาเลือกตึก/ชั้น/ห้องสำหรับย้ายออกก่อน"
STAFF_MOVEOUT_WATER_PROMPT = "กรุณาส่งรูปมิเตอร์น้ำ"
STAFF_MOVEOUT_WATER_RECEIVED = "รับรูปมิเตอร์น้ำแล้ว กรุณาส่งรูปมิเตอร์ไฟ"
STAFF_MOVEOUT_SAVED = "บันทึกรูปมิเตอร์น้ำ/ไฟ เรียบร้อย"
STAFF_MOVEOUT_IMAGE_FAILED = "ระบบไม่สามารถบันทึกรูปได้ กรุณาส่งใหม่อีกครั้ง"
STAFF_USE_STAFF_MOVEOUT = "คำสั่งแจ้งย้ายออกสำหรับผู้เช่า เจ้าหน้าที่ให้ใช้คำสั่ง แจ้งย้าย"

TENANT_MOVEOUT_PROMPT = "ต้องการย้ายออกภายในกี่วัน เลือกจากปุ่มด้านล่าง หรือเลือกวันที่จากปฏิทิน"
TENANT_MOVEOUT_PLAN_RETRY = "กรุณาเลือกจำนวนวันที่จะย้ายออกจากปุ่มที่ให้ไว้ หรือพิมพ์เช่น ย้ายออกอีก 15 วัน หรือ ออกสิ้นเดือน"
TENANT_MOVEOUT_REASON_PROMPT = "กรุณาพิมพ์เหตุผลการย้ายออก เช่น ย้ายที่ทำงาน ย้ายที่เรียน หรืออื่น ๆ"
TENANT_MOVEOUT_SAVED = "รับเรื่องแจ้งย้ายออกเรียบร้อย ขอบคุณที่ใช้บริการ"
TENANT_MOVEOUT_NO_SESSION = "กรุณาเริ่มแจ้งย้ายออกใหม่อีกครั้ง (พิมพ์: แจ้งย้ายออก)"
MOVEOUT_DAYS_RECORDED = "บันทึกการแจ้งย้ายออกล่วงหน้า {days} วันแล้ว\nกรุณาส่งชื่อธนาคาร เลขบัญชี และชื่อบัญชี สำหรับคืนเงินประกัน"
MOVEOUT_DUE_HEADER = "ห้องที่ครบกำหนดย้ายออกวันที่ {date}"

# ============================================================
# MAINTENANCE
# ============================================================

MAINTENANCE_TENANT_ONLY = "คำสั่งแจ้งซ่อมสำหรับผู้เช่าเท่านั้น"
MAINTENANCE_DETAIL_PROMPT = "กรุณาพิมพ์สิ่งของที่ชำรุด หรือปัญหาที่ต้องการให้ซ่อม"
MAINTENANCE_ASK_IMAGE = "ต้องการแนบรูปประกอบการแจ้งซ่อมหรือไม่"
MAINTENANCE_IMAGES_PROMPT = "กรุณาส่งรูปสิ่งของที่ชำรุด สามารถส่งได้หลายรูป หากส่งครบแล้วให้พิมพ์ว่า เสร็จสิ้น"
MAINTENANCE_IMAGE_SAVED = "บันทึกรูปแจ้งซ่อมแล้ว หากมีรูปเพิ่มเติมให้ส่งต่อได้เลย หากไม่มีให้พิมพ์ว่า เสร็จสิ้น"
MAINTENANCE_IMAGE_FAILED = "ระบบไม่สามารถบันทึกรูปได้ กรุณาส่งใหม่อีกครั้ง"
MAINTENANCE_SAVED = "รับเรื่องแจ้งซ่อมเรียบร้อย ระบบจะแจ้งเจ้าหน้าที่ให้ดำเนินการต่อ"
MAINTENANCE_NOTIFY_TITLE = "มีรายการแจ้งซ่อมใหม่"
MAINTENANCE_ACK_NOT_ALLOWED = "คุณไม่ได้รับมอบหมายงานซ่อมนี้ หรือหมดเวลายืนยันแล้ว"
MAINTENANCE_ACK_DONE = "บันทึกว่าซ่อมเสร็จแล้ว"
MAINTENANCE_ACK_NOT_DONE = "บันทึกว่ายังซ่อมไม่เสร็จ"
MAINTENANCE_TENANT_DONE = "งานแจ้งซ่อมของคุณดำเนินการเสร็จแล้ว"
MAINTENANCE_TENANT_IN_PROGRESS = "เจ้าหน้าที่รับเรื่องแจ้งซ่อมแล้ว อยู่ระหว่างดำเนินการ"
MAINTENANCE_NOT_FOUND = "ไม่พบรายการแจ้งซ่อม"
MAINTENANCE_LIST_EMPTY = "ไม่มีรายการแจ้งซ่อมที่รอดำเนินการ"
MAINTENANCE_LIST_HEADER = "รายการแจ้งซ่อมที่รอดำเนินการ"

# ============================================================
# REGISTRATION & LINKING
# ============================================================

REGISTER_PHONE_PROMPT = "กรุณาพิมพ์เบอร์โทรศัพท์ที่ลงทะเบียนกับหอพัก"
REGISTER_ALREADY_LINKED = "บัญชี LINE นี้เชื่อมต่อกับหอพักแล้ว"
REGISTER_PHONE_NOT_FOUND = "ไม่พบเบอร์โทรนี้ในระบบ กรุณาติดต่อเจ้าหน้าที่"
REGISTER_PHONE_TAKEN = "เบอร์โทรนี้เชื่อมต่อกับบัญชี LINE อื่นแล้ว กรุณาติดต่อเจ้าหน้าที่"
REGISTER_SUCCESS = "ลงทะเบียนสำเร็จ ห้อง {room}"
REGISTER_USAGE = "รูปแบบคำสั่ง: REGISTER <เบอร์โทร>"
LINK_REQUEST_SENT = "ส่งคำขอเชื่อมต่อห้อง {room} แล้ว\nยืนยันการเชื่อมต่อบัญชีหรือไม่"
LINK_ACCEPT_LABEL = "ยืนยัน"
LINK_REJECT_LABEL = "ยกเลิก"
LINK_ACCEPTED = "เชื่อมบัญชี LINE กับหอพักเรียบร้อย"
LINK_ALREADY_LINKED = "ผู้เช่านี้เชื่อมต่อบัญชี LINE แล้ว"
LINK_REJECTED = "ยกเลิกคำขอเชื่อมต่อเรียบร้อย"
LINK_REQUEST_MISSING = "ไม่พบคำขอเชื่อมต่อ"

STAFF_REGISTER_USAGE = "รูปแบบคำสั่ง: REGISTERSTAFFSISOM <เบอร์โทร>"
STAFF_REGISTER_NOT_FOUND = "ไม่พบบัญชีเจ้าหน้าที่สำหรับเบอร์นี้"
STAFF_REGISTER_CODE_PROMPT = "กรุณาพิมพ์รหัสยืนยัน 6 หลักที่ได้รับจากผู้ดูแลระบบ"
STAFF_REGISTER_CODE_INVALID = "รหัสยืนยันไม่ถูกต้อง"
STAFF_REGISTER_SUCCESS = "เชื่อมต่อสำเร็จ"
