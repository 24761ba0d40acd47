"""WebRTC 시그널링 관련 상수"""

# 설정이 비어 있을 때 사용하는 공용 STUN 서버
DEFAULT_STUN_URLS = ["stun:stun.l.google.com:19302"]

# Twilio NTS 토큰 발급 API
TWILIO_TOKENS_URL = "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Tokens.json"


class WSCloseCode:
    """WebSocket 종료 코드"""
    GOING_AWAY = 1001


class ErrorMessages:
    """클라이언트에 전달하는 error 메시지 문구"""
    INVALID_JSON = "Invalid JSON payload"
    MISSING_TYPE = "Message missing 'type'"
    UNKNOWN_TYPE = "Unknown message type: {msg_type}"
    JOIN_MISSING_ROOM = "Join message missing room"
    SIGNAL_MISSING_FIELDS = "Signal message missing fields"
    LEAVE_MISSING_ROOM = "Leave message missing room"
    ROOM_FULL = "Room is full"
    MESSAGE_TOO_LARGE = "Message too large"
    INTERNAL_ERROR = "Internal error"
