"""
即時機率 — odds_calculator.py
==============================
根據牌靴「剩下哪些牌」計算下一張是黑 / 紅的真實機率。
每抽一張牌，機率都會變化。
"""

from typing import Dict

from card_engine import Color, COLOR_LABELS, DivideByZero, Shoe


class OddsCalculator:
    """
    剩餘牌組機率
    只讀取牌靴的計數，不改變任何狀態
    """

    def __init__(self, shoe: Shoe):
        self.shoe = shoe

    def odds_for(self, color) -> float:
        """下一張為 color 的機率（%，取到小數一位）"""
        color = Color.parse(color)
        total = self.shoe.remaining_black + self.shoe.remaining_red
        if total == 0:
            raise DivideByZero("牌靴已空，無法計算機率")
        return round(self.shoe.remaining_of(color) / total * 100, 1)

    def all_odds(self) -> Dict[str, float]:
        return {c.value: self.odds_for(c) for c in Color}

    def edge_indicator(self) -> Dict:
        """
        牌況偏差
        favored: 剩餘較多的顏色（相同則 None）
        deviation: 偏離 50% 的百分點
        """
        black = self.shoe.remaining_black
        red = self.shoe.remaining_red
        total = black + red
        if total == 0:
            return {'favored': None, 'deviation': 0.0, 'remaining': 0,
                    'penetration': self.shoe.penetration * 100}

        black_pct = black / total * 100
        if black > red:
            favored = Color.BLACK
        elif red > black:
            favored = Color.RED
        else:
            favored = None

        return {
            'favored': favored.value if favored else None,
            'deviation': round(abs(black_pct - 50), 1),
            'remaining': total,
            'penetration': round(self.shoe.penetration * 100, 1),
        }

    def status_display(self) -> str:
        """格式化的牌況顯示"""
        shoe = self.shoe
        lines = []
        lines.append(f"  剩餘牌數: {shoe.remaining}/{shoe.initial_count}  "
                     f"(已出 {shoe.initial_count - shoe.remaining} 張, "
                     f"滲透率 {shoe.penetration * 100:.1f}%)")
        lines.append("")
        lines.append("  顏色  剩餘  原始  機率")
        lines.append("  " + "─" * 30)

        total = shoe.remaining_black + shoe.remaining_red
        original = shoe.initial_count // 2 if shoe.initial_count else 0
        for color in Color:
            remain = shoe.remaining_of(color)
            pct = remain / total * 100 if total else 0.0
            bar = '█' * (remain * 20 // original) if original > 0 else ''
            lines.append(f"  {COLOR_LABELS[color]:>2}    {remain:>3}   {original:>3}  "
                         f"{pct:>5.1f}%  {bar}")

        return "\n".join(lines)
