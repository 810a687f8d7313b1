# 옵션 이름 -> 기본값. DB 에 값이 없거나 해석할 수 없을 때 사용된다.
OPTION_DEFAULTS = {
    # 메시지
    "cost_per_message": 10,
    "max_chat_files_per_message": 1,
    "max_chat_image_mb": 5,
    "max_chat_audio_mb": 10,
    "max_chat_video_mb": 20,
    "max_chat_file_mb": 10,
    "messages_per_page": 25,

    # 영상 통화
    "video_call_cost_per_minute": 25,
    "video_call_minimum_start_balance": None,  # 없으면 분당 요금
    "video_call_ring_timeout_seconds": 60,

    # 광고 보상
    "max_daily_ad_views": 5,
    "ad_reward_coins": 5,

    # 가입
    "signup_bonus_coins": 0,
}
