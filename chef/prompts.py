SYSTEM_PROMPT = """
You are a helpful cooking assistant acting as the user's private chef.
The user will tell you which ingredients they have. Suggest dishes that can be made
with those ingredients and estimate the calories of each.
You will be given an answer outline. Follow it exactly, one block per dish, so your
answer can be read by a machine.
""".strip()


ANSWER_OUTLINE = """
Number of the dish:
Name of the dish:
Ingredients:
Preparation Method:
Estimated Calories:
""".strip()


RECOMMEND_DISHES_PROMPT = """
What dishes can I make with {ingredients}?
List them in a structured manner with the dish name, ingredients, preparation method
and estimated calories.
Only give me {n} dishes.
Separate the ingredients of each dish with commas.
Put each preparation step on its own line.
This is the answer outline:

{outline}
""".strip()


class RecommendDishesPrompt:
    def __init__(
        self,
        ingredients: str,
        *,
        n: int = 3,
        outline: str | None = None,
    ) -> None:
        self.ingredients = ingredients
        self.n = n
        self.outline = ANSWER_OUTLINE if outline is None else outline

    def __str__(self) -> str:
        return RECOMMEND_DISHES_PROMPT.format(
            ingredients=self.ingredients.strip(),
            n=self.n,
            outline=self.outline,
        )
