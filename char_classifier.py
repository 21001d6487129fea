"""
Single-character recognition.

`CharClassifier` is the only thing the solver knows about recognition:
png bytes of one glyph in, label -> confidence out. `CnnCharClassifier`
backs it with the project's PyTorch CNN; tests plug in deterministic stubs.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict

import cv2
import numpy as np
import torch
import torch.nn as nn
import torch.nn.functional as F

from method_result import MethodResult
from solver_config import DEFAULT_CONFIDENCE

logger = logging.getLogger(__name__)

CHARS = "0123456789abcdefghijklmnopqrstuvwxyz"
PLACEHOLDER = "_"


class CharClassifier(ABC):
    """Scores one glyph image against every known label."""

    @abstractmethod
    def predict_all_labels(self, image_bytes: bytes) -> Dict[str, float]:
        raise NotImplementedError


# =============================================================================
# Model Architecture (must match training)
# =============================================================================

class InvertedResidualBlock(nn.Module):
    """MobileNetV2-style block with depthwise separable convolutions."""
    def __init__(self, in_ch, out_ch, stride=1, expand_ratio=4):
        super().__init__()
        hidden_ch = in_ch * expand_ratio
        self.use_residual = (stride == 1 and in_ch == out_ch)

        self.conv = nn.Sequential(
            nn.Conv2d(in_ch, hidden_ch, 1, bias=False),
            nn.BatchNorm2d(hidden_ch),
            nn.ReLU6(inplace=True),
            nn.Conv2d(hidden_ch, hidden_ch, 3, stride=stride, padding=1,
                      groups=hidden_ch, bias=False),
            nn.BatchNorm2d(hidden_ch),
            nn.ReLU6(inplace=True),
            nn.Conv2d(hidden_ch, out_ch, 1, bias=False),
            nn.BatchNorm2d(out_ch),
        )

    def forward(self, x):
        if self.use_residual:
            return x + self.conv(x)
        return self.conv(x)


class EfficientCaptchaCNN(nn.Module):
    def __init__(self, num_classes=len(CHARS), dropout=0.5):
        super().__init__()

        self.stem = nn.Sequential(
            nn.Conv2d(3, 32, kernel_size=3, stride=1, padding=1, bias=False),
            nn.BatchNorm2d(32),
            nn.ReLU6(inplace=True)
        )

        self.features = nn.Sequential(
            InvertedResidualBlock(32, 32, stride=1, expand_ratio=1),
            InvertedResidualBlock(32, 64, stride=2, expand_ratio=4),
            InvertedResidualBlock(64, 64, stride=1, expand_ratio=4),
            InvertedResidualBlock(64, 128, stride=2, expand_ratio=4),
            InvertedResidualBlock(128, 128, stride=1, expand_ratio=4),
            InvertedResidualBlock(128, 256, stride=2, expand_ratio=4),
        )

        self.pool = nn.AdaptiveAvgPool2d((1, 1))

        self.classifier = nn.Sequential(
            nn.Flatten(),
            nn.Dropout(dropout),
            nn.Linear(256, num_classes)
        )

    def forward(self, x):
        x = self.stem(x)
        x = self.features(x)
        x = self.pool(x)
        return self.classifier(x)


def preprocess_char(char_img, target_size=(32, 32)):
    """Letterbox a grayscale glyph onto a white canvas of `target_size`."""
    if len(char_img.shape) == 3:
        char_img = cv2.cvtColor(char_img, cv2.COLOR_BGR2GRAY)

    h, w = char_img.shape
    target_h, target_w = target_size

    if h <= 0 or w <= 0:
        return np.ones((target_h, target_w), dtype=np.uint8) * 255

    scale = min(target_h / h, target_w / w)
    new_h = max(1, int(h * scale))
    new_w = max(1, int(w * scale))

    char_img = cv2.resize(char_img, (new_w, new_h))

    canvas = np.ones((target_h, target_w), dtype=np.uint8) * 255
    y_offset = (target_h - new_h) // 2
    x_offset = (target_w - new_w) // 2
    canvas[y_offset:y_offset + new_h, x_offset:x_offset + new_w] = char_img

    return canvas


class CnnCharClassifier(CharClassifier):
    """Softmax scores of `EfficientCaptchaCNN` for one glyph."""

    def __init__(self, model_path=None, device=None, labels=CHARS, input_size=(32, 32)):
        self.device = device or torch.device("cuda" if torch.cuda.is_available() else "cpu")
        self.labels = labels
        self.input_size = input_size

        self.model = EfficientCaptchaCNN(num_classes=len(labels)).to(self.device)
        if model_path is not None:
            model_path = Path(model_path)
            if not model_path.exists():
                raise FileNotFoundError(f"Model weights not found: {model_path}")
            self.model.load_state_dict(torch.load(model_path, map_location=self.device))
            logger.info("Loaded character model from %s", model_path)
        else:
            logger.warning("No model weights given, character predictions are untrained")
        self.model.eval()

    def predict_all_labels(self, image_bytes: bytes) -> Dict[str, float]:
        buffer = np.frombuffer(image_bytes, dtype=np.uint8)
        char_img = cv2.imdecode(buffer, cv2.IMREAD_GRAYSCALE)
        if char_img is None:
            raise ValueError("Unable to decode the character image.")

        canvas = preprocess_char(char_img, self.input_size)
        char_tensor = torch.from_numpy(canvas).float() / 255.0
        char_tensor = char_tensor.unsqueeze(0).repeat(3, 1, 1)
        char_tensor = char_tensor.unsqueeze(0).to(self.device)

        with torch.no_grad():
            output = self.model(char_tensor)
            probs = F.softmax(output, dim=1)[0].cpu().tolist()

        return dict(zip(self.labels, probs))


def solve_character(image_bytes, classifier: CharClassifier,
                    confidence_threshold=DEFAULT_CONFIDENCE) -> MethodResult[str]:
    """
    Resolve one glyph to an uppercase character.

    The strictly highest score wins; below `confidence_threshold` the
    placeholder is returned instead. A score equal to the threshold passes.
    """
    try:
        if not image_bytes:
            return MethodResult.fail("Character image bytes are empty.")

        if not 0 <= confidence_threshold <= 1:
            return MethodResult.fail("Confidence threshold must be between 0 and 1.")

        predictions = classifier.predict_all_labels(image_bytes)
        highest_score = 0.0
        highest_label = None
        for label, score in predictions.items():
            if score > highest_score:
                highest_score = score
                highest_label = str(label).upper()[:1] or PLACEHOLDER

        if highest_label is None or highest_score < confidence_threshold:
            return MethodResult.ok(PLACEHOLDER)
        return MethodResult.ok(highest_label)
    except Exception as e:
        return MethodResult.fail(str(e))
