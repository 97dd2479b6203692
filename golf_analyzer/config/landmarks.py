"""MediaPipe Pose landmark definitions."""

# MediaPipe Pose 33 landmarks
POSE_LANDMARKS = {
    0: "nose",
    1: "left_eye_inner",
    2: "left_eye",
    3: "left_eye_outer",
    4: "right_eye_inner",
    5: "right_eye",
    6: "right_eye_outer",
    7: "left_ear",
    8: "right_ear",
    9: "mouth_left",
    10: "mouth_right",
    11: "left_shoulder",
    12: "right_shoulder",
    13: "left_elbow",
    14: "right_elbow",
    15: "left_wrist",
    16: "right_wrist",
    17: "left_pinky",
    18: "right_pinky",
    19: "left_index",
    20: "right_index",
    21: "left_thumb",
    22: "right_thumb",
    23: "left_hip",
    24: "right_hip",
    25: "left_knee",
    26: "right_knee",
    27: "left_ankle",
    28: "right_ankle",
    29: "left_heel",
    30: "right_heel",
    31: "left_foot_index",
    32: "right_foot_index",
}

# Reverse mapping
LANDMARK_NAMES = {v: k for k, v in POSE_LANDMARKS.items()}

NUM_LANDMARKS = len(POSE_LANDMARKS)

# Keypoints the feature extractor needs for angles and the club proxy
REQUIRED_LANDMARKS = (
    "left_shoulder",
    "right_shoulder",
    "left_hip",
    "right_hip",
    "left_wrist",
    "right_wrist",
)

# Points recorded into a SwingTrajectory alongside the club proxy
TRACKED_LANDMARKS = (
    "right_wrist",
    "left_wrist",
    "right_shoulder",
    "left_shoulder",
    "right_hip",
    "left_hip",
)
