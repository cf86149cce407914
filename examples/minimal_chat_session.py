from __future__ import annotations

import asyncio
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from game_chatbot import ChatBotService, CompletionResponse
from game_chatbot.config import load_config
from game_chatbot.core.types import EntitySighting


class DemoCompletion:
    async def complete(self, request):
        info = request.message.split("[Function Info]", 1)
        hint = info[1].strip() if len(info) > 1 else "no game context"
        return CompletionResponse(reply_text=f"Based on what I can see: {hint}", token_usage=len(request.message) // 4)


class PrintMessenger:
    def send_message(self, player_id: str, text: str) -> None:
        print(f"-> {player_id}: {text}")


@dataclass
class DemoWorld:
    name: str = "world"
    seed: int = 424242
    time: int = 13000
    difficulty: str = "HARD"
    has_storm: bool = True
    loaded_chunks: int = 625

    def entity_count(self) -> int:
        return 140


@dataclass
class DemoPlayer:
    uuid: str = "5b1f6a0e-3c1d-4a4b-9a57-9b0a1f2e3d4c"
    name: str = "Alex"
    display_name: str = "Alex"
    address: str | None = None
    game_mode: str = "SURVIVAL"
    health: float = 14.0
    max_health: float = 20.0
    food_level: int = 9
    exp_level: int = 12
    location: tuple[float, float, float] = (-120.5, 63.0, 88.25)
    world: DemoWorld = field(default_factory=DemoWorld)

    def item_in_hand(self):
        return None

    def inventory(self):
        return []

    def nearby_entities(self, radius: int):
        return [EntitySighting("zombie", 6.2), EntitySighting("zombie", 11.0), EntitySighting("skeleton", 15.4)]


class DemoPlayers:
    def get_player(self, player_id: str):
        return DemoPlayer() if player_id == "alex" else None


async def main() -> None:
    with tempfile.TemporaryDirectory() as workdir:
        config = load_config(Path(workdir) / "config.yml")
        service = ChatBotService.from_config(
            config,
            completion=DemoCompletion(),
            messenger=PrintMessenger(),
            players=DemoPlayers(),
            models={"openai": ["gpt-4o"]},
        )

        for line in service.on_command("alex", ["openai", "gpt-4o"]):
            print(line)

        for text in ["How many zombies nearby?", "What is the weather like?", "quit"]:
            result = await service.on_chat("alex", text)
            if result.task is not None:
                await result.task

        await service.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
