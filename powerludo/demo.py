"""Play one game of power-up Ludo with uniformly random legal actions."""

import argparse
import logging
import random

from powerludo.powerludo import env


def main():
    parser = argparse.ArgumentParser(description="Random-play smoke run of the power-up Ludo environment.")
    parser.add_argument("--players", type=int, default=4, help="Number of players (2-6).")
    parser.add_argument("--seed", type=int, default=None, help="Seed for dice and power-up spawns.")
    parser.add_argument("--max-steps", type=int, default=5000)
    parser.add_argument("--verbose", action="store_true", help="Log engine events.")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    game = env(num_players=args.players)
    game.reset(seed=args.seed)
    rng = random.Random(args.seed)

    print(f"Starting power-up Ludo with {args.players} players")

    steps = 0
    while game.agents and steps < args.max_steps:
        steps += 1
        agent = game.agent_selection
        obs, reward, termination, truncation, info = game.last()

        if termination or truncation:
            print(f"\nWinner: {max(game.rewards, key=game.rewards.get)} after {steps} steps")
            break

        engine = game.unwrapped.engine
        legal = [i for i, v in enumerate(obs["action_mask"]) if v == 1]
        action = rng.choice(legal)
        print(f"{agent}: phase={engine.state.phase.value} dice={engine.state.dice_roll} action={action}")
        game.step(action)

    game.close()
    print("\nDemo finished.")


if __name__ == "__main__":
    main()
