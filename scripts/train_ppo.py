import os
import logging

import torch.nn as nn
from stable_baselines3 import PPO
from stable_baselines3.common.callbacks import CheckpointCallback, EvalCallback
from stable_baselines3.common.env_checker import check_env
from stable_baselines3.common.monitor import Monitor
from stable_baselines3.common.vec_env import DummyVecEnv, SubprocVecEnv  # For parallel envs

from game2048.env import Game2048Env

logger = logging.getLogger("game2048.train")

# --- Configuration ---
LOG_DIR = "ppo_2048_logs"
MODEL_SAVE_PATH = os.path.join("models", "ppo_2048_model")
TOTAL_TIMESTEPS = 1_000_000  # Adjust as needed
N_ENVS = 4  # Number of parallel environments, adjust based on CPU cores
LEARNING_RATE = 0.0003
N_STEPS = 2048        # Steps per environment per update
BATCH_SIZE = 64
N_EPOCHS = 10
GAMMA = 0.99
GAE_LAMBDA = 0.95
CLIP_RANGE = 0.2
ENT_COEF = 0.01       # Keeps exploring; 2048 policies collapse onto one direction easily
VF_COEF = 0.5
INVALID_MOVE_PENALTY = -1.0


def make_env(rank, seed=0):
    """
    Utility function for multiprocessed env.
    :param rank: (int) index of the subprocess
    :param seed: (int) the initial seed for RNG
    """
    def _init():
        env = Game2048Env(invalid_move_penalty=INVALID_MOVE_PENALTY)
        env = Monitor(env)
        env.reset(seed=seed + rank)
        return env
    return _init


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    os.makedirs(LOG_DIR, exist_ok=True)
    os.makedirs(os.path.dirname(MODEL_SAVE_PATH), exist_ok=True)

    logger.info("Checking custom environment...")
    check_env(Game2048Env(), warn=True)

    logger.info("Creating %d parallel environments...", N_ENVS)
    if N_ENVS > 1:
        vec_env = SubprocVecEnv([make_env(i) for i in range(N_ENVS)])
    else:
        vec_env = DummyVecEnv([make_env(0)])
    eval_env = DummyVecEnv([make_env(0, seed=10_000)])

    checkpoint_callback = CheckpointCallback(
        save_freq=max(100_000 // N_ENVS, 1),  # Every 100k steps across all envs
        save_path=LOG_DIR,
        name_prefix="ppo_2048_model"
    )
    eval_callback = EvalCallback(
        eval_env,
        best_model_save_path=os.path.join(LOG_DIR, "best_model"),
        log_path=LOG_DIR,
        eval_freq=max(50_000 // N_ENVS, 1),
        deterministic=True,
        render=False
    )

    # The observation is a small 4x4 grid of exponents, an MLP is enough.
    policy_kwargs = dict(net_arch=dict(pi=[256, 256], vf=[256, 256]), activation_fn=nn.ReLU)

    model = PPO(
        "MlpPolicy",
        vec_env,
        learning_rate=LEARNING_RATE,
        n_steps=N_STEPS,
        batch_size=BATCH_SIZE,
        n_epochs=N_EPOCHS,
        gamma=GAMMA,
        gae_lambda=GAE_LAMBDA,
        clip_range=CLIP_RANGE,
        ent_coef=ENT_COEF,
        vf_coef=VF_COEF,
        policy_kwargs=policy_kwargs,
        verbose=1,
        tensorboard_log=LOG_DIR
    )

    logger.info("Starting training for %d timesteps...", TOTAL_TIMESTEPS)
    try:
        model.learn(total_timesteps=TOTAL_TIMESTEPS, callback=[checkpoint_callback, eval_callback])
        model.save(MODEL_SAVE_PATH)
        logger.info("Final model saved to %s.zip", MODEL_SAVE_PATH)
    finally:
        vec_env.close()
        eval_env.close()
        logger.info("Environments closed.")


if __name__ == "__main__":
    main()
