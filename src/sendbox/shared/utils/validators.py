from decimal import Decimal, InvalidOperation


def to_decimal(v: object) -> Decimal:
    """任意の値を Decimal に変換する

    Pydantic の field_validator (mode="before") や料金計算の入口から呼び出す。
    float は str 経由で変換し、2 進数の誤差を持ち込まない。
    NaN / Infinity や数値でない文字列は ValueError とする。
    """
    if isinstance(v, Decimal):
        value = v
    elif isinstance(v, bool):
        raise ValueError(f"Not a number: {v!r}")
    else:
        try:
            value = Decimal(str(v))
        except InvalidOperation as e:
            raise ValueError(f"Not a number: {v!r}") from e
    if not value.is_finite():
        raise ValueError(f"Not a finite number: {v!r}")
    return value
