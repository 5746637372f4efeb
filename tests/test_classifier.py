# ==============================================
# Tests for Classifier Module
# ==============================================

import logging

import pytest

from form_intake.analysis.classifier import (
    DEFAULT_CLASSIFICATION,
    ClassificationResult,
    DefaultClassifier,
    SubmissionClassifier,
    load_classifier,
)


class _BrokenClassifier(SubmissionClassifier):
    def classify(self, record):
        raise RuntimeError("model unavailable")


class _WrongTypeClassifier(SubmissionClassifier):
    def classify(self, record):
        return {"priority": "High"}


class _KeywordClassifier(SubmissionClassifier):
    def classify(self, record):
        message = str(record.get("message", "")).lower()
        if "urgent" in message:
            return ClassificationResult(category="Support", sentiment="Negative", priority="High")
        return DEFAULT_CLASSIFICATION


class TestDefaultClassifier:
    def test_default_labels(self):
        result = DefaultClassifier().classify({"anything": "goes"})

        assert result == ClassificationResult("General", "Neutral", "Medium")
        assert result.to_dict() == {"category": "General", "sentiment": "Neutral", "priority": "Medium"}

    def test_empty_record(self):
        assert DefaultClassifier().safe_classify({}) == DEFAULT_CLASSIFICATION


class TestSafeClassify:
    def test_custom_rules_are_used(self):
        result = _KeywordClassifier().safe_classify({"message": "URGENT: site down"})
        assert result.priority == "High"

    def test_exception_falls_back_to_default(self, caplog):
        with caplog.at_level(logging.ERROR):
            result = _BrokenClassifier().safe_classify({"a": 1})

        assert result == DEFAULT_CLASSIFICATION
        assert "_BrokenClassifier failed" in caplog.text

    def test_wrong_return_type_falls_back_to_default(self):
        assert _WrongTypeClassifier().safe_classify({"a": 1}) == DEFAULT_CLASSIFICATION


class TestLoadClassifier:
    def test_empty_path_gives_default(self):
        assert isinstance(load_classifier(""), DefaultClassifier)

    def test_dotted_path(self):
        classifier = load_classifier("form_intake.analysis.classifier.DefaultClassifier")
        assert isinstance(classifier, DefaultClassifier)

    def test_missing_module(self):
        with pytest.raises(ImportError):
            load_classifier("form_intake.no_such_module.Classifier")

    def test_missing_class(self):
        with pytest.raises(ImportError):
            load_classifier("form_intake.analysis.classifier.NoSuchClassifier")

    def test_path_without_module(self):
        with pytest.raises(ImportError):
            load_classifier("DefaultClassifier")

    def test_not_a_classifier(self):
        with pytest.raises(TypeError):
            load_classifier("form_intake.analysis.classifier.ClassificationResult")
