class WeightConverter:
    """Utility for converting between kg and lbs."""

    KG_TO_LB = 2.20462

    @staticmethod
    def kg_to_lb(kg: float) -> float:
        return round(kg * WeightConverter.KG_TO_LB, 2)

    @staticmethod
    def lb_to_kg(lb: float) -> float:
        return round(lb / WeightConverter.KG_TO_LB, 2)

    @staticmethod
    def convert(weight: float, from_unit: str, to_unit: str) -> float:
        if from_unit == to_unit:
            return weight
        if from_unit == "kg" and to_unit == "lbs":
            return WeightConverter.kg_to_lb(weight)
        if from_unit == "lbs" and to_unit == "kg":
            return WeightConverter.lb_to_kg(weight)
        raise ValueError(f"cannot convert {from_unit} to {to_unit}")
