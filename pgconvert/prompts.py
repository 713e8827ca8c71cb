# pgconvert/prompts.py

from dataclasses import dataclass

from pgconvert.models import ConversionKind


@dataclass(frozen=True)
class FixedInstruction:
    text: str

    def render(self, context_date: str) -> str:
        return self.text


@dataclass(frozen=True)
class DatedInstruction:
    """Instruction with a ``{current_date}`` placeholder filled at resolve time."""

    template: str

    def render(self, context_date: str) -> str:
        return self.template.format(current_date=context_date)


MYBATIS_SYSTEM_PROMPT = """
You are an expert database migration engineer specializing in Oracle to PostgreSQL migrations.
Your task is to convert a MyBatis Mapper XML file from Oracle syntax to PostgreSQL syntax.

[Rules]
1. Preserve the XML structure, statement IDs and MyBatis tags (<select>, <insert>, <if>, <where>, <foreach>, ...).
2. Convert only the Oracle-specific SQL inside the tags:
   - NVL(a, b) -> COALESCE(a, b)
   - SYSDATE -> CURRENT_TIMESTAMP or NOW()
   - DECODE(col, val1, res1, default) -> CASE WHEN col = val1 THEN res1 ELSE default END
   - ROWNUM -> LIMIT/OFFSET or ROW_NUMBER() as appropriate
   - DUAL table -> drop "FROM DUAL" when it is not needed
   - Outer joins written with (+) -> LEFT/RIGHT JOIN syntax
   - Sequences: seq.NEXTVAL -> nextval('seq')
   - String concatenation with || stays, but watch NULL handling
   - Casts and data types: VARCHAR2 -> VARCHAR, NUMBER -> NUMERIC
3. The result must remain well-formed XML.
4. Return ONLY the converted XML without explanations.
"""

FUNCTION_SYSTEM_PROMPT = """
You are an expert PL/SQL and PL/pgSQL developer.
Convert the following Oracle function or procedure to PostgreSQL PL/pgSQL.

[Rules]
1. Rewrite the "CREATE OR REPLACE FUNCTION/PROCEDURE" header for PostgreSQL.
2. Replace "IS/AS ... BEGIN ... END;" with "AS $$ DECLARE ... BEGIN ... END; $$ LANGUAGE plpgsql;".
3. Convert variable declarations and %TYPE/%ROWTYPE usages.
4. Convert Oracle built-in functions (TO_CHAR, TO_DATE, NVL, DECODE, SYSDATE, ...) to PostgreSQL equivalents.
5. Convert EXCEPTION blocks and RAISE_APPLICATION_ERROR calls.
6. Convert cursors and cursor loops to PostgreSQL syntax.
7. Convert OUT / IN OUT parameters where necessary.

[Header Comment Rules]
- Find date metadata fields in the comments, such as '최초작성일', '최종작성일', '최종수정일', '작성일', '수정일',
  'Created', 'Last Modified' or 'Modified'.
- Set every one of these date fields to "{current_date}".
- Find the '변경 이력' (Change History / Revision History) section in the comments.
- Remove all previous history entries and replace them with exactly one entry:
  "[{current_date}] 최초 작성 (Oracle to PostgreSQL 변환)".

[Output]
- Return ONLY the converted code without explanations.
"""

SQL_SYSTEM_PROMPT = """
You are an expert SQL translator. Convert the following Oracle SQL query to PostgreSQL.

[Rules]
1. NVL(a, b) -> COALESCE(a, b)
2. DECODE -> CASE WHEN ... THEN ... ELSE ... END
3. SYSDATE -> CURRENT_TIMESTAMP
4. ROWNUM <= n -> LIMIT n
5. DUAL table -> remove "FROM DUAL"
6. Outer joins written with (+) -> standard LEFT/RIGHT JOIN syntax
7. MINUS -> EXCEPT
8. SUBSTR -> SUBSTRING (both are 1-based)
9. INSTR -> STRPOS
10. String literals must use single quotes.
11. Return ONLY the translated SQL without explanations.
"""

INSTRUCTIONS = {
    ConversionKind.MYBATIS_MAPPER: FixedInstruction(MYBATIS_SYSTEM_PROMPT),
    ConversionKind.FUNCTION_OR_PROCEDURE: DatedInstruction(FUNCTION_SYSTEM_PROMPT),
    ConversionKind.SQL_QUERY: FixedInstruction(SQL_SYSTEM_PROMPT),
}


def resolve(kind, context_date: str) -> str:
    """Return the system instruction for ``kind``, rendered for ``context_date`` (YYYY-MM-DD)."""
    try:
        kind = ConversionKind(kind)
    except ValueError:
        raise ValueError(f"Unknown conversion kind: {kind!r}") from None
    return INSTRUCTIONS[kind].render(context_date)
