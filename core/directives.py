"""
Directive composition for the trend research phases.

Every function here is a pure string builder: identical inputs give
identical directives, so the pipeline can be tested without calling the
model.

Directives
──────────
research_directives(request)  search phase: web_search on, free-form draft
report_directives(request)    single combined call: no search, JSON only
format_directives(draft)      format phase: transcode the draft into JSON
repair_directives(text)       repair phase: coerce near-JSON into valid JSON

A search directive never asks for JSON-only output and a JSON directive
never mentions web_search: the provider cannot combine the two in one call.
"""

from __future__ import annotations

from typing import NamedTuple

from core.models import FactcheckLevel, ResearchRequest
from core.period import normalize_period

#: Self-check passes embedded in the system directive per factcheck level.
FACTCHECK_PASSES: dict[FactcheckLevel, int] = {
    FactcheckLevel.QUICK: 1,
    FactcheckLevel.STANDARD: 3,
    FactcheckLevel.STRICT: 5,
}

ANALYST_ROLE = "あなたは食品・菓子業界の市場調査アナリスト。"
LANGUAGE_RULE = "出力は必ず日本語。"
JSON_ONLY_RULE = "出力はJSONのみ（前後に文章やコードフェンスを付けない）。"

#: Human-readable schema; the machine-readable one lives in core.models.
SCHEMA_LINES: tuple[str, ...] = (
    "出力JSONスキーマ:",
    "{",
    '  "id": "string",',
    '  "generated_at": "ISO8601",',
    '  "title": "string",',
    '  "summary": "string",',
    '  "trends": ["string"...],',
    '  "implications": ["string"...],',
    '  "risks": ["string"...],',
    '  "next_actions": ["string"...],',
    '  "credibility_score": number,',
    '  "sources": [{"title":"string","publisher":"string","date":"string",'
    '"url":"string","credibility":number,"notes":"string"}...]',
    "}",
)

#: Sections the free-form research draft must contain, mirroring the schema.
DRAFT_SECTIONS: tuple[str, ...] = (
    "下書きの構成（見出しをこの順で付ける。JSONにはしない）:",
    "- タイトル",
    "- 要約",
    "- 主要トレンド（5〜8件）",
    "- 示唆",
    "- リスクと前提",
    "- 次アクション",
    "- 総合信頼性スコア（1-5）",
    "- 参照ソース（タイトル / 媒体名 / 日付 / URL / 信頼性1-5 / メモ）",
)


class Directives(NamedTuple):
    system: str
    user: str


def factcheck_passes(level: FactcheckLevel | None) -> int:
    """Number of self-check passes for *level*; ``None`` behaves as standard."""
    return FACTCHECK_PASSES.get(level or FactcheckLevel.STANDARD, 3)


def _operating_rules(request: ResearchRequest) -> list[str]:
    passes = factcheck_passes(request.settings.factcheck_level)
    threshold = request.settings.credibility_threshold
    return [
        "ルール:",
        "1) 参照ソースは必ずURL・媒体名・日付（可能なら公開日）を入れる。",
        "2) 断定は根拠がある場合のみ。推測は推測と明示。",
        "3) 最低でも主要ソースを5件は探す。難しい場合はその理由をrisksに書く。",
        f"4) 各ソースに信頼性スコア(1-5)を付ける。{threshold}未満のソースが多い場合は"
        "risksで注意喚起する（ソース自体は除外しない）。",
        f"5) セルフファクトチェックを {passes} 回行い、矛盾・日付・固有名詞・引用整合性を点検してから出力。",
        "6) 過度な一般論で水増ししない。実務に落ちる提案に寄せる。",
    ]


def _user_directive(request: ResearchRequest) -> str:
    period = normalize_period(request.period)
    return "\n".join(
        [
            f"調査トピック: {request.topic}",
            f"調査期間: {period.label}",
            f"業界: {', '.join(request.industries) or '-'}",
            f"チャネル: {', '.join(request.channels) or '-'}",
            f"実行モード: {request.mode or 'auto'}",
            "",
            "指示:",
            f"- {period.note}公開情報を中心に調査し、国内外（特に日本・米国・アジア）も必要に応じて触れる。",
            "- 日本の小売/菓子文脈（百貨店、駅ナカ、CVS、EC、インバウンド）への示唆を必ず含める。",
            "- “いつ/誰が/何を/どこで/なぜ”の最低1要素を各トレンドに入れて、曖昧さを減らす。",
            "- 可能なら定量（%/価格/件数/市場規模など）を入れるが、数字は出典付きのみ。",
            "- 出典が弱い数字は“参考値”として扱い、risksに回す。",
        ]
    )


def research_directives(request: ResearchRequest) -> Directives:
    """Directives for the search phase: gather facts as a structured prose draft."""
    system = [
        ANALYST_ROLE,
        LANGUAGE_RULE,
        "目的: 入力トピックについて、最新の公開情報を web_search で調査し、"
        "意思決定に使えるインサイトの下書きを作る。",
        *_operating_rules(request),
        "",
        *DRAFT_SECTIONS,
    ]
    return Directives(system="\n".join(system), user=_user_directive(request))


def report_directives(request: ResearchRequest) -> Directives:
    """Directives for the single combined call used when search is disabled."""
    system = [
        ANALYST_ROLE,
        LANGUAGE_RULE,
        JSON_ONLY_RULE,
        "目的: 入力トピックについて、把握している公開情報から意思決定に使えるインサイトを作る。",
        *_operating_rules(request),
        "",
        *SCHEMA_LINES,
    ]
    return Directives(system="\n".join(system), user=_user_directive(request))


def format_directives(draft: str) -> Directives:
    """Directives for the format phase: lossless transcoding of *draft* into JSON."""
    system = [
        "あなたは調査レポートの整形担当。",
        LANGUAGE_RULE,
        JSON_ONLY_RULE,
        "入力の下書きを、内容を追加・削除・要約せずに、下記スキーマのJSONへ変換する。",
        "下書きに無い項目は空文字列または空配列にする。URLや日付は原文のまま写す。",
        "",
        *SCHEMA_LINES,
    ]
    return Directives(system="\n".join(system), user=f"下書き:\n{draft}")


def repair_directives(text: str) -> Directives:
    """Directives for the repair phase: fix *text* that failed to parse."""
    system = [
        "あなたはJSON修復担当。",
        JSON_ONLY_RULE,
        "入力テキストはJSONとして解析できなかった。内容は変えずに、"
        "下記スキーマに沿った有効なJSONオブジェクト1つに修正して出力する。",
        "余計な前置き・説明・コードフェンスは削除する。",
        "",
        *SCHEMA_LINES,
    ]
    return Directives(system="\n".join(system), user=f"修復対象:\n{text}")
