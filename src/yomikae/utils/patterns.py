"""
読み替え規定の共通パターン定義

引用の外側に現れる構造語（とあるのは・とあり・と読み替える 等）と、
スコープ（第N条中 等）を読むための正規表現を一元管理する。

設計方針:
- パターンとシンプルなヘルパ関数のみを提供
- 複数候補が重なるものは長い順に並べる
"""

import re
from typing import Optional, Tuple

# ==============================================================================
# 読み替え規定の構造語
# ==============================================================================

# 「A」とあるのは「B」と読み替える
READ_AS_MARKER = 'とあるのは'

# 「A」とあり、及び「C」とあるのは「B」と（A と C に同じ置換後の字句）
SHARED_MARKER = 'とあり'

# 「A」、「C」とあるのは、それぞれ「B」、「D」と
RESPECTIVELY = 'それぞれ'

# 置換後の字句に続く「と」
PAIR_CLOSER = 'と'

# 「と読み替える」「と、それぞれ読み替えるものとする」
TERMINATOR_PATTERN = re.compile(r'^と、?(?:それぞれ)?読み替え[^、。「『]*')

# 引用同士を並べる区切り（長い順）
LIST_SEPARATORS: Tuple[str, ...] = tuple(sorted((
    '、', '及び', '又は', '並びに', '若しくは',
    '、及び', '、又は', '、並びに', '、若しくは',
), key=len, reverse=True))

# 「とあり」の直後の接続語（長い順）
SHARED_CONNECTIVES: Tuple[str, ...] = tuple(sorted((
    '、', '、及び', '、並びに', '、又は', '、若しくは', '及び', '並びに', '又は',
), key=len, reverse=True))

# スコープ先頭から取り除く接続語
LEADING_CONNECTIVES_PATTERN = re.compile(r'^(?:及び|並びに|又は|若しくは|それぞれ|かつ)+')

# 上流の分類器: この字句を含む文を読み替え規定の候補とする
YOMIKAE_TRIGGER = 'と読み替え'

# 表形式の読み替え規定の判定
TABLE_TRIGGER = '読み替え'

# ==============================================================================
# スコープ（条・項・号・章節）
# ==============================================================================

# 漢数字・算用数字・全角数字
NUMBER_CLASS = r'[〇一二三四五六七八九十百千0-9０-９]+'

# スコープ直前の区切りとして、後ろに延ばしてよい断片の末尾
# 例: 「第一条、第二条中」の「第一条」
REFERENCE_TAIL_PATTERN = re.compile(
    rf'(?:条|項|号|[イロハニホヘトチリヌルヲ]|の{NUMBER_CLASS})$'
)

ARTICLE_PATTERN = re.compile(rf'第({NUMBER_CLASS})条((?:の{NUMBER_CLASS})*)|(同|前|次|本|この)条')
PARAGRAPH_PATTERN = re.compile(rf'第({NUMBER_CLASS})項|(同|前|次|本|この)項')
ITEM_PATTERN = re.compile(rf'第({NUMBER_CLASS})号((?:の{NUMBER_CLASS})*)|(同|前|次|本|この)号')
SUBITEM_PATTERN = re.compile(r'[イロハニホヘトチリヌルヲワカヨタレソツネナラム]')
SUPPL_PREFIX = '附則'

# 第二章第一節 / この節 / 本章
SECTION_LEVELS: Tuple[str, ...] = ('編', '章', '節', '款', '目')
SECTION_UNIT_PATTERN = re.compile(rf'第({NUMBER_CLASS})({"|".join(SECTION_LEVELS)})((?:の{NUMBER_CLASS})*)')
SECTION_SELF_PATTERN = re.compile(rf'(?:この|本|同)({"|".join(SECTION_LEVELS)})')

# 参照同士の区切り（長い順）
REFERENCE_SEPARATOR_PATTERN = re.compile(r'、|及び|並びに|又は|若しくは|から')
RANGE_END = 'まで'

# 参照の末尾に付く限定語
QUALIFIER_PATTERN = re.compile(
    r'^の?(?:規定|本文|ただし書|前段|後段|各号列記以外の部分|各号|表(?:の[上中下]欄)?)'
    r'(?:(?:の|及び)(?:規定|本文|ただし書|前段|後段|各号列記以外の部分|各号))*$'
)

# スコープ先頭の参照（法令名の切り出しに使う）
FIRST_REFERENCE_PATTERN = re.compile(
    rf'附則|第{NUMBER_CLASS}(?:条|項|号|編|章|節|款|目)'
    r'|(?:同|前|次|本|この)(?:条|項|号)|(?:この|本|同)(?:編|章|節|款|目)'
)

# 条文中の条番号の言及（同条の解決に使う）
ARTICLE_MENTION_PATTERN = re.compile(
    rf'(附則)?第({NUMBER_CLASS})条((?:の{NUMBER_CLASS})*)'
    rf'(?:第({NUMBER_CLASS})項)?'
    rf'(?:第({NUMBER_CLASS})号((?:の{NUMBER_CLASS})*))?'
)

# ==============================================================================
# 法令名プレフィックス
# ==============================================================================

# 本法系プレフィックス（当該法令自身を指す）
SELF_LAW_PREFIXES: Tuple[str, ...] = (
    '本法',
    'この法律',
    'この政令',
    'この省令',
    'この規則',
    'この命令',
    '本令',
)

# 直前に言及された法令を指すプレフィックス
SAME_LAW_PREFIXES: Tuple[str, ...] = (
    '同法',
    '同令',
    '同規則',
    '同省令',
    '同政令',
)

# 法令名の末尾
LAW_NAME_SUFFIX_PATTERN = re.compile(r'(?:法律|法|令|規則|条例|規程|憲法)$')

# 法令名の直後に付く助詞・読点
LAW_NAME_JOINER_PATTERN = re.compile(r'[の、]$')

# 法令名として扱わない区切り文字
LAW_NAME_BREAK_CHARS = '、。「」『』（）()　 '


def classify_law_prefix(prefix: str) -> Tuple[str, Optional[str]]:
    """
    参照直前の字句が指す法令を分類する

    Returns:
        (種別, 法令名) のタプル。種別は
        'self'（当該法令）, 'same'（直前の法令）, 'external'（他法令）,
        'invalid'（法令名として読めない）のいずれか。

    Examples:
        >>> classify_law_prefix('')
        ('self', None)
        >>> classify_law_prefix('徴収法施行規則')
        ('external', '徴収法施行規則')
        >>> classify_law_prefix('事業の期間')
        ('invalid', None)
    """
    prefix = LAW_NAME_JOINER_PATTERN.sub('', prefix.strip())
    if not prefix:
        return 'self', None
    if prefix in SELF_LAW_PREFIXES:
        return 'self', None
    if prefix in SAME_LAW_PREFIXES:
        return 'same', None
    if any(c in LAW_NAME_BREAK_CHARS for c in prefix):
        return 'invalid', None
    if LAW_NAME_SUFFIX_PATTERN.search(prefix):
        return 'external', prefix
    return 'invalid', None


def mask_spans(text: str, spans) -> str:
    """
    指定範囲を全角空白で塗りつぶす（オフセットは保持）

    引用内の字句を構造語の探索対象から外すために使う。
    """
    chars = list(text)
    for start, end in spans:
        for i in range(start, min(end, len(chars))):
            chars[i] = '　'
    return ''.join(chars)


# ==============================================================================
# 表形式の読み替え規定
# ==============================================================================

# 見出し行のセル（読み替えられる規定 / 読み替えられる字句 / 読み替える字句）
TABLE_HEADER_CELL_PATTERN = re.compile(r'^(?:読み替え[^\s　]*?)?(?:規定|字句)$')
