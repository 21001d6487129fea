"""
Captcha solver: binarize -> split into glyphs -> classify each glyph.

Usage:
    solver = CaptchaSolver("captchas/ABCDEF.png", classifier=CnnCharClassifier("model.pth"))
    result = solver.solve()
    if result.success:
        print(result.get_result())
    else:
        print(result.message_stack())
"""

import logging

from char_classifier import PLACEHOLDER, CharClassifier, CnnCharClassifier, solve_character
from glyph_normalizer import normalize_glyphs
from method_result import MethodResult, MethodResultList
from preprocess import encode_png, load_binarized
from segmentation import extract_character_images
from solver_config import DEFAULT_CONFIDENCE, DEFAULT_MODEL_PATH, SolverConfig

logger = logging.getLogger(__name__)


class CaptchaSolver:
    """
    Solves one captcha image.

    The binarized image is kept as instance state and never modified, so
    `solve` can be called repeatedly. Not thread-safe: use one instance per
    image when solving concurrently.
    """

    def __init__(self, source, classifier: CharClassifier = None, config: SolverConfig = None):
        self.config = config or SolverConfig()
        # undecodable input is fatal, let it propagate
        self.image = load_binarized(source, self.config.ink_cutoff)

        if classifier is None:
            classifier = CnnCharClassifier(self.config.model_path or DEFAULT_MODEL_PATH)
        self.classifier = classifier

    def get_character_images(self) -> MethodResultList:
        """The six normalized glyph images, left to right."""
        try:
            extract_result = extract_character_images(self.image, self.config)
            if not extract_result.success:
                return MethodResultList.fail("Unable to find character columns in the captcha image.",
                                             extract_result)

            char_images = normalize_glyphs(extract_result.get_result() or [],
                                           self.config.glyph_size, self.config.ink_cutoff)
            return MethodResultList.ok(char_images, total_count=extract_result.total_count)
        except Exception as e:
            return MethodResultList.fail(str(e))

    def _solve_glyph(self, char_image, confidence_threshold) -> MethodResult[str]:
        try:
            image_bytes = encode_png(char_image)
        except Exception as e:
            return MethodResult.fail(str(e))
        return solve_character(image_bytes, self.classifier, confidence_threshold)

    def solve(self, confidence_threshold=DEFAULT_CONFIDENCE) -> MethodResult[str]:
        """Returns the code; unresolved characters come back as '_'."""
        try:
            if not 0 <= confidence_threshold <= 1:
                return MethodResult.fail("Confidence threshold must be between 0 and 1.")

            characters_result = self.get_character_images()
            if not characters_result.success:
                return MethodResult.fail("No characters found in the captcha.", characters_result)

            char_images = characters_result.get_result()
            if not char_images:
                return MethodResult.fail("No characters found in the captcha.")

            code = []
            for i, char_image in enumerate(char_images):
                char_result = self._solve_glyph(char_image, confidence_threshold)
                if not char_result.success or not char_result.get_result():
                    logger.debug("Character %d unresolved: %s", i, char_result.message)
                    code.append(PLACEHOLDER)
                else:
                    code.append(char_result.get_result().upper())

            captcha_code = "".join(code)
            logger.info("Solved captcha: %s", captcha_code)
            return MethodResult.ok(captcha_code)
        except Exception as e:
            return MethodResult.fail(str(e))
