"""
MediaPipe Face Mesh 랜드마크 인덱스

refine_landmarks=True 로 실행했을 때 기준 (총 478개)
- 0 ~ 467: 얼굴 메쉬 포인트
- 468 ~ 477: 홍채 포인트 (눈마다 5개)
"""

ALL_LANDMARK_COUNT = 478

# 홍채
LEFT_IRIS_INDICES = [468, 469, 470, 471, 472]
RIGHT_IRIS_INDICES = [473, 474, 475, 476, 477]

# 왼쪽 눈: 눈썹 + 홍채 + 눈꺼풀 윤곽
LEFT_EYE_INDICES = [
    107, 66, 105, 63, 70, 55, 65, 52, 53, 46,
    *LEFT_IRIS_INDICES,
    133, 33, 173, 157, 158, 159, 160, 161, 246,
    155, 154, 153, 145, 144, 163, 7,
]

# 오른쪽 눈: 눈썹 + 홍채 + 눈꺼풀 윤곽
RIGHT_EYE_INDICES = [
    336, 296, 334, 293, 300, 285, 295, 282, 283, 276,
    *RIGHT_IRIS_INDICES,
    362, 263, 398, 384, 385, 386, 387, 388, 466,
    382, 381, 380, 374, 373, 390, 249,
]

# 얼굴 기준점 (코, 이마, 턱, 광대)
MUTUAL_INDICES = [4, 10, 151, 9, 152, 234, 454, 58, 288]

# 깜빡임 감지 (EAR) 용 눈 모서리 / 눈꺼풀
LEFT_EYE_CORNERS = {"inner": 133, "outer": 33, "top": 159, "bottom": 145}
RIGHT_EYE_CORNERS = {"inner": 362, "outer": 263, "top": 386, "bottom": 374}

# 자세 정규화용 기준점
POSE_LANDMARKS = {
    "nose": 4,
    "left_eye_corner": 33,
    "right_eye_corner": 263,
    "top_of_head": 10,
}

# 특징 부분집합 정책
FEATURE_SUBSETS = {
    "eyes": LEFT_EYE_INDICES + RIGHT_EYE_INDICES + MUTUAL_INDICES,
    "all": list(range(ALL_LANDMARK_COUNT)),
}
