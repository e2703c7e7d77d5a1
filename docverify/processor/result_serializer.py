from typing import Any

from docverify.comparison.models import ComparisonResult
from docverify.parsing.models import AddressFields, ClassificationResult, IdentityFields
from docverify.preprocessing.models import ImageLegibilityFailure, PreprocessInfo
from docverify.processor.models import (
    DocTypeCheck,
    FieldChecks,
    Heuristics,
    TranscriptLegibility,
)

RESIDENCE_DOCUMENT_TYPE = "COMPROVANTE_RESIDENCIA"


class ResultSerializer:
    """Converts typed pipeline output to the JSONB shapes stored on ocr_results.

    Stored keys are read by admin tooling, so they stay stable: Portuguese
    field keys under ``structured_data.fields`` and camelCase heuristics.
    Fields that were not found are omitted rather than stored as null.
    """

    def structured_data(
        self,
        document_type: str,
        fields: IdentityFields | AddressFields | None,
    ) -> dict[str, Any]:
        return {"document_type": document_type, "fields": self.fields(fields)}

    def fields(self, fields: IdentityFields | AddressFields | None) -> dict[str, str]:
        if fields is None:
            return {}
        if isinstance(fields, AddressFields):
            pairs = {
                "cep": fields.postal_code,
                "endereco": fields.street,
                "cidade": fields.city,
                "estado": fields.state,
                "bairro": fields.neighborhood,
            }
        else:
            pairs = {
                "nome": fields.name,
                "cpf": fields.cpf,
                "rg_cnh": fields.document_number,
                "data_emissao": fields.issue_date,
                "data_validade": fields.expiry_date,
                "orgao_emissor": fields.issuing_authority,
                "uf": fields.state,
            }
        return {key: value for key, value in pairs.items() if value is not None}

    def heuristics(self, heuristics: Heuristics) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if heuristics.classification is not None:
            payload.update(self._classification(heuristics.classification))
        if heuristics.preprocess is not None:
            payload["preprocess"] = self._preprocess(heuristics.preprocess)
        if heuristics.comparison is not None:
            payload["comparison"] = self._comparison(heuristics.comparison)
        if heuristics.doc_type is not None:
            payload["docType"] = self._doc_type(heuristics.doc_type)
        if heuristics.field_checks is not None:
            payload["fieldChecks"] = self._field_checks(heuristics.field_checks)
        payload["requestId"] = heuristics.request_id
        payload["legibility"] = self._legibility(heuristics.legibility)
        if heuristics.expired is not None:
            payload["expired"] = heuristics.expired
        return payload

    def _classification(self, classification: ClassificationResult) -> dict[str, Any]:
        return {
            "rgScore": classification.rg_score,
            "cnhScore": classification.cnh_score,
            "matchedKeywords": list(classification.matched_keywords),
        }

    def _preprocess(self, info: PreprocessInfo) -> dict[str, Any]:
        return {
            "resized": info.resized,
            "rotated": info.rotated,
            "originalWidth": info.original_width,
            "originalHeight": info.original_height,
        }

    def _comparison(self, comparison: ComparisonResult) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "mismatch": comparison.mismatch,
            "reasons": list(comparison.reasons),
            "nameSimilarity": comparison.name_similarity,
            "nameDivergence": comparison.name_divergence,
            "nameThreshold": comparison.name_threshold,
        }
        if comparison.cpf_matches is not None:
            payload["cpfMatches"] = comparison.cpf_matches
        return payload

    def _doc_type(self, check: DocTypeCheck) -> dict[str, Any]:
        return {
            "detected": check.detected.value if check.detected else None,
            "uploaded": check.uploaded.value if check.uploaded else None,
            "mismatch": check.mismatch,
        }

    def _field_checks(self, checks: FieldChecks) -> dict[str, bool]:
        pairs = {"cpfValid": checks.cpf_valid, "cepValid": checks.cep_valid}
        return {key: value for key, value in pairs.items() if value is not None}

    def _legibility(
        self, legibility: TranscriptLegibility | ImageLegibilityFailure
    ) -> dict[str, Any]:
        if isinstance(legibility, ImageLegibilityFailure):
            return {
                "ok": legibility.ok,
                "reason": legibility.reason,
                "minWidth": legibility.min_width,
                "minHeight": legibility.min_height,
                "minBytes": legibility.min_bytes,
                "width": legibility.width,
                "height": legibility.height,
                "size": legibility.size,
            }
        return {
            "ok": legibility.ok,
            "minTextLength": legibility.min_text_length,
            "rawLength": legibility.raw_length,
        }
