"""
HuggingFace Client - local model backend

Responsibilities:
- Load a causal LM (optionally 4-bit quantized) and its tokenizer
- Generate text completions for extraction/classification prompts
- Convert CUDA and generation failures into ProviderError

Design principles:
- Dependency injection (no singleton)
- Imported lazily by the client registry, so torch/transformers are only
  required when provider == "huggingface" (pip install .[local])
- Fail fast on load errors, fail soft (ProviderError) on generation errors
"""

import time
import logging
from typing import Any, Dict, Optional

import torch
from transformers import (
    AutoModelForCausalLM,
    AutoTokenizer,
    BitsAndBytesConfig
)

from fir_assistant.clients.base import TextGenerationClient
from fir_assistant.config import PROVIDER_HUGGINGFACE, ProviderConfig
from fir_assistant.errors import ProviderError

logger = logging.getLogger(__name__)

DEVICE_CUDA = "cuda"
DEVICE_CPU = "cpu"
DEVICE_MAP_AUTO = "auto"


class HuggingFaceClient(TextGenerationClient):
    """Local transformers model behind generate_text()"""

    provider_name = PROVIDER_HUGGINGFACE

    def __init__(
        self,
        config: ProviderConfig,
        load_in_4bit: bool = True,
        device: Optional[str] = None,
        max_tokens: int = 512,
        temperature: float = 0.0
    ) -> None:
        """
        Load model and tokenizer

        Args:
            config: Provider config (model name taken from resolved_model)
            load_in_4bit: Use NF4 quantization on CUDA
            device: "cuda" or "cpu" (auto-detected if None)
            max_tokens: Maximum new tokens per generation
            temperature: Sampling temperature (0.0 = greedy)

        Raises:
            Exception: If tokenizer or model loading fails
        """
        self.model_name = config.resolved_model
        self.device = device or (DEVICE_CUDA if torch.cuda.is_available() else DEVICE_CPU)
        self.max_tokens = max_tokens
        self.temperature = temperature

        logger.info(f"Loading model: {self.model_name} (device={self.device}, 4bit={load_in_4bit})")

        quantization_config = None
        if load_in_4bit and self.device == DEVICE_CUDA:
            quantization_config = BitsAndBytesConfig(
                load_in_4bit=True,
                bnb_4bit_quant_type="nf4",
                bnb_4bit_compute_dtype=torch.bfloat16,
                bnb_4bit_use_double_quant=True
            )

        try:
            self.tokenizer = AutoTokenizer.from_pretrained(self.model_name)
            if self.tokenizer.pad_token is None and self.tokenizer.eos_token is not None:
                self.tokenizer.pad_token = self.tokenizer.eos_token
        except Exception as e:
            logger.error(f"Failed to load tokenizer: {e}")
            raise

        try:
            self.model = AutoModelForCausalLM.from_pretrained(
                self.model_name,
                quantization_config=quantization_config,
                device_map=DEVICE_MAP_AUTO if self.device == DEVICE_CUDA else None,
                torch_dtype=torch.bfloat16 if self.device == DEVICE_CUDA else torch.float32
            )
        except Exception as e:
            logger.error(f"Failed to load model: {e}")
            raise

        self.model.eval()
        logger.info("HuggingFace client initialized successfully")

    def is_loaded(self) -> bool:
        return self.model is not None and self.tokenizer is not None

    def _format_prompt(self, prompt: str) -> str:
        # Chat template when the tokenizer ships one, raw prompt otherwise
        if getattr(self.tokenizer, 'chat_template', None):
            return self.tokenizer.apply_chat_template(
                [{'role': 'user', 'content': prompt}],
                tokenize=False,
                add_generation_prompt=True
            )
        return prompt

    def generate_text(self, prompt: str) -> str:
        if not self.is_loaded():
            raise ProviderError("Model not loaded", provider=self.provider_name)

        start_time = time.time()
        inputs = self.tokenizer(self._format_prompt(prompt), return_tensors="pt")
        if self.device == DEVICE_CUDA:
            inputs = inputs.to(DEVICE_CUDA)
        prompt_tokens = inputs.input_ids.shape[1]

        try:
            with torch.no_grad():
                outputs = self.model.generate(
                    inputs.input_ids,
                    max_new_tokens=self.max_tokens,
                    temperature=self.temperature,
                    do_sample=self.temperature > 0,
                    pad_token_id=self.tokenizer.pad_token_id
                )
        except torch.cuda.OutOfMemoryError as e:
            logger.error(f"CUDA OOM during generation (prompt tokens: {prompt_tokens})")
            raise ProviderError("CUDA out of memory", provider=self.provider_name) from e
        except RuntimeError as e:
            raise ProviderError(f"Generation failed: {e}", provider=self.provider_name) from e

        generated_ids = outputs[0][prompt_tokens:]
        text = self.tokenizer.decode(generated_ids, skip_special_tokens=True)

        elapsed_ms = (time.time() - start_time) * 1000
        logger.debug(f"Generated {len(generated_ids)} tokens in {elapsed_ms:.0f}ms")
        return text

    def describe(self) -> Dict[str, Any]:
        info = {
            'provider': self.provider_name,
            'model': self.model_name,
            'device': self.device,
            'is_loaded': self.is_loaded(),
        }
        if self.device == DEVICE_CUDA and torch.cuda.is_available():
            info['gpu_memory_allocated_gb'] = torch.cuda.memory_allocated() / 1e9
        return info
