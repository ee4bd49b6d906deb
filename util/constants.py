class InternalURIs:
    API = "/api"
    V1 = API + "/v1"
    SESSIONS = V1 + "/sessions"
    SESSION = SESSIONS + "/{session_id}"
    RESET = SESSION + "/reset"
    IMAGES = SESSION + "/images"
    IMAGE = IMAGES + "/{index}"
    RUNS = SESSION + "/runs"
    BONUS = SESSION + "/bonus"
    BATCHES = SESSION + "/batches"
    ACTIVE_BATCH = BATCHES + "/active"
    CLARIFY = SESSION + "/clarify"
    ANSWERS = SESSION + "/answers"
    NAVIGATE = SESSION + "/navigate"
    FINISH = SESSION + "/finish"
    REPORT = SESSION + "/report"
    PREFERENCES = SESSION + "/preferences"
    NOTICE = SESSION + "/notice"
    EXPORT = SESSION + "/export"


class ExternalURIs:
    GENERATE_CONTENT = "{base}/{model}:generateContent"
